"""Repository port for subscription persistence.

Implementations store one row per subscriber and must make every mutation a
single atomic store operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.models import Subscription


class SubscriptionRepositoryPort(ABC):
    """Abstract repository for newsletter subscriptions.

    This is a port interface that must be implemented by infrastructure adapters.
    """

    @abstractmethod
    async def list(self) -> list[Subscription]:
        """Retrieve all subscriptions.

        Returns:
            All stored subscriptions; an empty list when the store is empty

        Raises:
            StoreError: If retrieval fails
        """
        ...

    @abstractmethod
    async def add(self, email: str) -> None:
        """Insert an active subscription for ``email``.

        An existing row for the address is left untouched.

        Args:
            email: Subscriber address

        Raises:
            StoreError: If the insert fails
        """
        ...

    @abstractmethod
    async def delete(self, email: str) -> None:
        """Remove the subscription for ``email``; absent addresses are ignored.

        Args:
            email: Subscriber address

        Raises:
            StoreError: If the delete fails
        """
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Subscription | None:
        """Retrieve the subscription for ``email``.

        Args:
            email: Subscriber address

        Returns:
            The subscription if found, None otherwise

        Raises:
            StoreError: If retrieval fails
        """
        ...

    @abstractmethod
    async def set_active(self, email: str, active: bool) -> bool:
        """Set the ``active`` flag of an existing subscription.

        Args:
            email: Subscriber address
            active: New flag value

        Returns:
            True if a row was updated, False if no row exists for ``email``

        Raises:
            StoreError: If the update fails
        """
        ...
