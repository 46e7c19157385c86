"""Connection manager for infrastructure resources.

This module manages the lifecycle of the database engine and the executor
that runs blocking store calls, keeping connection management out of the
business logic.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..domain.exceptions import StoreError
from .database import create_schema
from .factory import InfrastructureFactory

if TYPE_CHECKING:
    from concurrent.futures import ThreadPoolExecutor

    from sqlalchemy.engine import Engine

    from ..application.subscription_service import SubscriptionService
    from ..domain.config import ServiceConfiguration

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the engine, executor and service for one application."""

    def __init__(self, config: ServiceConfiguration):
        """Initialize the connection manager.

        Args:
            config: Service configuration
        """
        self.config = config
        self._engine: Engine | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._service: SubscriptionService | None = None

    async def startup(self) -> None:
        """Create the engine, ensure the schema exists and wire the service.

        Raises:
            StoreError: If the database cannot be prepared
        """
        logger.info("Initializing database engine using factory...")
        self._engine = InfrastructureFactory.create_engine(self.config)
        self._executor = InfrastructureFactory.create_executor(self.config)

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(self._executor, create_schema, self._engine)
        except StoreError:
            await self.shutdown()
            raise

        repository = InfrastructureFactory.create_subscription_repository(
            self._engine, self._executor, self.config
        )
        self._service = InfrastructureFactory.create_subscription_service(
            repository, self.config
        )
        logger.info("Database connected and subscription service initialized")

    async def shutdown(self) -> None:
        """Dispose of the pool and stop the executor.

        Statements already running are allowed to finish.
        """
        if self._executor is not None:
            await asyncio.to_thread(self._executor.shutdown, True)
            self._executor = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Disposed database engine")
        self._service = None

    @property
    def service(self) -> SubscriptionService:
        """Get the subscription service.

        Raises:
            StoreError: If not initialized
        """
        if self._service is None:
            raise StoreError("Subscription service not initialized. Call startup() first.")
        return self._service
