"""FastAPI dependency injection setup.

The connection manager lives on ``app.state`` for the lifetime of the
application; routes only ever see the application service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Request

from ...domain.exceptions import StoreError

if TYPE_CHECKING:
    from ...application.subscription_service import SubscriptionService
    from ..connection_manager import ConnectionManager


def get_connection_manager(request: Request) -> ConnectionManager:
    """Get the connection manager created by the application lifespan.

    Raises:
        StoreError: If the application has not started
    """
    manager = getattr(request.app.state, "connection_manager", None)
    if manager is None:
        raise StoreError("Connection manager not initialized")
    return manager


def get_subscription_service(
    manager: ConnectionManager = Depends(get_connection_manager),  # noqa: B008
) -> SubscriptionService:
    """Get the subscription service.

    Returns:
        SubscriptionService: Application service for subscriptions
    """
    return manager.service
