"""Infrastructure adapters for the newsletter service."""

from .configuration_adapter import EnvironmentConfigurationAdapter
from .in_memory_repository import InMemorySubscriptionRepository
from .sqlalchemy_repository import SqlAlchemySubscriptionRepository

__all__ = [
    "EnvironmentConfigurationAdapter",
    "InMemorySubscriptionRepository",
    "SqlAlchemySubscriptionRepository",
]
