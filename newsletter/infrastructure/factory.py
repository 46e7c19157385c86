"""Infrastructure factory for creating adapters and dependencies.

This module follows the Factory pattern to centralize the creation of
infrastructure components, promoting loose coupling and testability.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from ..application.subscription_service import SubscriptionService
from .configuration_adapter import EnvironmentConfigurationAdapter
from .database import create_database_engine, uses_single_connection
from .sqlalchemy_repository import SqlAlchemySubscriptionRepository

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from ..domain.config import ServiceConfiguration
    from ..ports.configuration import ConfigurationPort
    from ..ports.subscription_repository import SubscriptionRepositoryPort


class InfrastructureFactory:
    """Factory for creating infrastructure adapters following hexagonal architecture.

    This factory encapsulates the creation logic for all infrastructure components,
    making it easy to swap implementations and configure dependencies.
    """

    @staticmethod
    def create_configuration_port() -> ConfigurationPort:
        """Create a configuration port adapter.

        Returns:
            ConfigurationPort implementation
        """
        return EnvironmentConfigurationAdapter()

    @staticmethod
    def create_engine(config: ServiceConfiguration) -> Engine:
        """Create the pooled database engine.

        Args:
            config: Service configuration

        Returns:
            SQLAlchemy engine
        """
        return create_database_engine(config)

    @staticmethod
    def create_executor(config: ServiceConfiguration) -> ThreadPoolExecutor:
        """Create the thread pool that runs blocking store calls.

        Sized to the connection pool, or to one worker when the engine shares a
        single connection.
        """
        workers = 1 if uses_single_connection(config) else config.pool_size + config.max_overflow
        return ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="newsletter-db",
        )

    @staticmethod
    def create_subscription_repository(
        engine: Engine, executor: ThreadPoolExecutor, config: ServiceConfiguration
    ) -> SubscriptionRepositoryPort:
        """Create a SQL subscription repository adapter.

        Args:
            engine: Shared engine
            executor: Thread pool for blocking calls
            config: Service configuration

        Returns:
            SubscriptionRepositoryPort implementation
        """
        timeout = config.pool_timeout_seconds + config.statement_timeout_seconds
        return SqlAlchemySubscriptionRepository(engine, executor, statement_timeout=timeout)

    @staticmethod
    def create_subscription_service(
        repository: SubscriptionRepositoryPort, config: ServiceConfiguration
    ) -> SubscriptionService:
        """Create the subscription application service.

        Args:
            repository: Repository the service delegates to
            config: Service configuration

        Returns:
            SubscriptionService wired to ``repository``
        """
        return SubscriptionService(repository, bulk_concurrency=config.bulk_concurrency)
