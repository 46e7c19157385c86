"""Main entry point for the newsletter service API.

This module sets up the FastAPI application using hexagonal architecture,
with clear separation between framework concerns and business logic.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from . import __version__
from .infrastructure.api.error_handlers import register_error_handlers
from .infrastructure.api.middleware import TraceContextMiddleware
from .infrastructure.api.routes import health_router, router
from .infrastructure.connection_manager import ConnectionManager
from .infrastructure.factory import InfrastructureFactory

if TYPE_CHECKING:
    from .domain.config import ServiceConfiguration

logger = logging.getLogger(__name__)


def create_app(config: ServiceConfiguration | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service configuration; loaded from the environment when omitted

    Returns:
        The configured application
    """
    if config is None:
        config = InfrastructureFactory.create_configuration_port().load_configuration()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """Create the store connections on startup and release them on shutdown."""
        logger.info("Starting newsletter service")
        logger.info(f"Service configured for environment: {config.environment}")

        connection_manager = ConnectionManager(config)
        await connection_manager.startup()
        app.state.connection_manager = connection_manager
        logger.info("Service is ready to handle requests")

        try:
            yield
        finally:
            logger.info("Shutting down newsletter service")
            app.state.connection_manager = None
            await connection_manager.shutdown()

    app = FastAPI(
        title="Newsletter Service",
        description="Newsletter subscription management API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    register_error_handlers(app)
    app.add_middleware(TraceContextMiddleware, header_name=config.trace_header)

    app.include_router(router)
    app.include_router(health_router)
    return app
