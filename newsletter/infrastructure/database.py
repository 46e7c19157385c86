"""Relational store setup: schema definition and engine construction.

The engine owns the connection pool shared by every repository call. It is
created once per process by the infrastructure factory and passed explicitly
to the repository.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    func,
    true,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from ..domain.exceptions import StoreError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from ..domain.config import ServiceConfiguration

logger = logging.getLogger(__name__)

metadata = MetaData()

newsletters = Table(
    "newsletters",
    metadata,
    # SQLite only auto-increments INTEGER PRIMARY KEY columns
    Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("email", Text, nullable=False, unique=True),
    Column("active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)


def uses_single_connection(config: ServiceConfiguration) -> bool:
    """Whether the engine serves every call from one shared connection.

    True for in-memory SQLite, where each new connection would open an empty
    database.
    """
    url = make_url(config.database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_database_engine(config: ServiceConfiguration) -> Engine:
    """Build the pooled engine for the configured database.

    Pool limits and timeouts come from the configuration. On PostgreSQL the
    statement timeout is also enforced server side.

    Args:
        config: Service configuration

    Returns:
        A SQLAlchemy engine with a thread-safe connection pool
    """
    url = make_url(config.database_url)
    backend = url.get_backend_name()
    connect_args: dict[str, Any] = {}
    engine_args: dict[str, Any] = {"pool_pre_ping": True}

    if backend == "sqlite":
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = config.statement_timeout_seconds
        if uses_single_connection(config):
            engine_args["poolclass"] = StaticPool
        else:
            engine_args.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_timeout=config.pool_timeout_seconds,
            )
    else:
        if backend == "postgresql":
            timeout_ms = int(config.statement_timeout_seconds * 1000)
            connect_args["options"] = f"-c statement_timeout={timeout_ms}"
        engine_args.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout_seconds,
        )

    engine = create_engine(url, connect_args=connect_args, **engine_args)
    logger.info(
        f"Created database engine for backend {backend}",
        extra={"pool_size": config.pool_size, "pool_timeout": config.pool_timeout_seconds},
    )
    return engine


def create_schema(engine: Engine) -> None:
    """Create the ``newsletters`` table if it does not exist yet.

    Raises:
        StoreError: If the store cannot be reached
    """
    try:
        metadata.create_all(engine, checkfirst=True)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create schema: {e}")
        raise StoreError("Failed to create schema", operation="create_schema", cause=e) from e
    logger.info("Database schema is ready")
