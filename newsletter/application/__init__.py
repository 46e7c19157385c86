"""Application layer for the newsletter service."""

from .subscription_service import SubscriptionService

__all__ = ["SubscriptionService"]
