"""In-memory implementation of the SubscriptionRepositoryPort.

This is an infrastructure adapter for tests and local development. Every
method completes without awaiting, so each call is atomic with respect to
other tasks on the event loop.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..domain.exceptions import StoreError
from ..domain.models import Subscription
from ..ports.subscription_repository import SubscriptionRepositoryPort


class InMemorySubscriptionRepository(SubscriptionRepositoryPort):
    """In-memory implementation of SubscriptionRepositoryPort for testing."""

    def __init__(self, fail_on: Iterable[str] = ()) -> None:
        """Initialize the in-memory storage.

        Args:
            fail_on: Addresses for which every call raises StoreError
        """
        # Insertion order doubles as the surrogate id order
        self._storage: dict[str, Subscription] = {}
        self.fail_on: set[str] = set(fail_on)

    async def list(self) -> list[Subscription]:
        """Return all subscriptions, newest first."""
        return list(reversed(self._storage.values()))

    async def add(self, email: str) -> None:
        """Insert an active subscription unless one exists."""
        self._check(email, "CREATE")
        if email not in self._storage:
            self._storage[email] = Subscription(email=email)

    async def delete(self, email: str) -> None:
        """Remove a subscription from memory."""
        self._check(email, "DELETE")
        self._storage.pop(email, None)

    async def get_by_email(self, email: str) -> Subscription | None:
        """Get a subscription by email."""
        self._check(email, "READ")
        return self._storage.get(email)

    async def set_active(self, email: str, active: bool) -> bool:
        """Flip ``active`` on an existing subscription."""
        self._check(email, "UPDATE")
        current = self._storage.get(email)
        if current is None:
            return False
        self._storage[email] = current.with_active(active)
        return True

    def clear(self) -> None:
        """Clear all stored subscriptions (useful for testing)."""
        self._storage.clear()

    def get_all(self) -> list[Subscription]:
        """Get all stored subscriptions in insertion order (useful for testing)."""
        return list(self._storage.values())

    def _check(self, email: str, operation: str) -> None:
        if email in self.fail_on:
            raise StoreError("Simulated store failure", operation=operation, email=email)
