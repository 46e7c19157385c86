"""Shared pytest fixtures for newsletter tests."""

import io
import json
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from newsletter.application.subscription_service import SubscriptionService
from newsletter.domain.config import ServiceConfiguration
from newsletter.infrastructure.database import create_schema
from newsletter.infrastructure.in_memory_repository import InMemorySubscriptionRepository
from newsletter.infrastructure.logging_config import build_formatter
from newsletter.infrastructure.sqlalchemy_repository import SqlAlchemySubscriptionRepository


@pytest.fixture
def test_config():
    """Configuration pointing at a private in-memory SQLite database."""
    return ServiceConfiguration(
        database_url="sqlite://",
        pool_size=2,
        max_overflow=0,
        pool_timeout_seconds=1.0,
        statement_timeout_seconds=5.0,
        bulk_concurrency=4,
        log_format="text",
    )


@pytest.fixture
def memory_repository():
    """Fresh in-memory repository."""
    return InMemorySubscriptionRepository()


@pytest.fixture
def memory_service(memory_repository):
    """Subscription service backed by the in-memory repository."""
    return SubscriptionService(memory_repository, bulk_concurrency=4)


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def executor():
    """Executor for blocking store calls."""
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="test-db")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def sql_repository(sqlite_engine, executor):
    """SQL repository over the in-memory SQLite engine."""
    return SqlAlchemySubscriptionRepository(sqlite_engine, executor, statement_timeout=5.0)


@pytest.fixture
def captured_logs():
    """Render ``newsletter`` records as JSON and return a reader of the parsed events."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_formatter("json"))
    logger = logging.getLogger("newsletter")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    def read():
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield read
    logger.removeHandler(handler)
    logger.setLevel(previous_level)
