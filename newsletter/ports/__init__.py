"""Port interfaces for the newsletter service."""

from .configuration import ConfigurationPort
from .subscription_repository import SubscriptionRepositoryPort

__all__ = ["ConfigurationPort", "SubscriptionRepositoryPort"]
