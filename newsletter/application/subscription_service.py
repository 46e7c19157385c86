"""Application service for newsletter subscriptions.

This module implements the business rules of the service (validation,
idempotency, bulk semantics) on top of the repository port. It never touches a
concrete store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING

from ..domain.exceptions import BulkOperationError, NewsletterError, ValidationError
from ..domain.models import BulkResult, Subscription, validate_email
from ..domain.trace import traced

if TYPE_CHECKING:
    from ..ports.subscription_repository import SubscriptionRepositoryPort

logger = logging.getLogger(__name__)

DEFAULT_BULK_CONCURRENCY = 8


def _distinct(emails: Iterable[str]) -> list[str]:
    """Drop duplicate addresses, keeping first-seen order."""
    return list(dict.fromkeys(emails))


def _normalize_domain(domain: str) -> str:
    domain = domain.strip().lstrip("@").lower()
    if not domain or any(not label for label in domain.split(".")) or "@" in domain:
        raise ValidationError(f"Invalid domain: {domain!r}", field="domain", value=domain)
    return domain


class SubscriptionService:
    """Service for managing newsletter subscriptions."""

    def __init__(
        self,
        repository: SubscriptionRepositoryPort,
        bulk_concurrency: int = DEFAULT_BULK_CONCURRENCY,
    ):
        """Initialize the subscription service.

        Args:
            repository: The subscription repository
            bulk_concurrency: Maximum addresses processed in parallel by bulk calls
        """
        if bulk_concurrency < 1:
            raise ValueError("bulk_concurrency must be at least 1")
        self._repository = repository
        self._bulk_concurrency = bulk_concurrency

    @traced("service.list_subscriptions")
    async def list_subscriptions(self) -> list[Subscription]:
        """List all subscriptions.

        Returns:
            All stored subscriptions

        Raises:
            StoreError: If retrieval fails
        """
        subscriptions = await self._repository.list()
        logger.info(f"Listed {len(subscriptions)} subscriptions")
        return subscriptions

    @traced("service.subscribe")
    async def subscribe(self, email: str) -> None:
        """Subscribe ``email``, reactivating an inactive subscription.

        Subscribing an already active address changes nothing.

        Args:
            email: Subscriber address

        Raises:
            ValidationError: If the address is malformed
            StoreError: If the store fails
        """
        try:
            validate_email(email)
        except ValidationError:
            logger.warning("Rejected subscription with malformed email", extra={"email": email})
            raise

        await self._repository.add(email)
        await self._repository.set_active(email, True)
        logger.info("Subscribed email", extra={"email": email})

    @traced("service.unsubscribe")
    async def unsubscribe(self, email: str) -> None:
        """Remove the subscription for ``email``.

        The address is not validated: removing an address that was never
        subscribed, well-formed or not, is harmless.

        Args:
            email: Subscriber address

        Raises:
            StoreError: If the store fails
        """
        await self._repository.delete(email)
        logger.info("Unsubscribed email", extra={"email": email})

    @traced("service.get_subscription")
    async def get_subscription(self, email: str) -> Subscription | None:
        """Get the subscription for ``email``.

        Args:
            email: Subscriber address

        Returns:
            The subscription, or None when the address is unknown

        Raises:
            StoreError: If retrieval fails
        """
        subscription = await self._repository.get_by_email(email)
        logger.debug("Looked up subscription", extra={"email": email, "found": bool(subscription)})
        return subscription

    @traced("service.get_subscription_status")
    async def get_subscription_status(self, email: str) -> bool:
        """Tell whether ``email`` has an active subscription.

        Args:
            email: Subscriber address

        Returns:
            True if an active subscription exists, False otherwise

        Raises:
            StoreError: If retrieval fails
        """
        subscription = await self._repository.get_by_email(email)
        return subscription is not None and subscription.active

    @traced("service.update_subscription_status")
    async def update_subscription_status(self, emails: Iterable[str], active: bool) -> BulkResult:
        """Set ``active`` on every listed subscription that exists.

        Unknown addresses are skipped, never created. Each address is updated
        by its own store statement; failures are collected and reported after
        the whole set was attempted.

        Args:
            emails: Subscriber addresses
            active: New flag value

        Returns:
            Counts of updated and skipped addresses

        Raises:
            BulkOperationError: If any address could not be updated
        """

        async def apply(email: str) -> bool:
            return await self._repository.set_active(email, active)

        return await self._run_bulk("update_subscription_status", _distinct(emails), apply)

    @traced("service.delete_subscriptions")
    async def delete_subscriptions(self, emails: Iterable[str]) -> BulkResult:
        """Remove the subscriptions of all listed addresses.

        Args:
            emails: Subscriber addresses

        Returns:
            Counts of processed addresses

        Raises:
            BulkOperationError: If any address could not be removed
        """

        async def apply(email: str) -> bool:
            await self._repository.delete(email)
            return True

        return await self._run_bulk("delete_subscriptions", _distinct(emails), apply)

    @traced("service.unsubscribe_domain")
    async def unsubscribe_domain(self, domain: str) -> BulkResult:
        """Remove every subscription whose address belongs to ``domain``.

        Matching is done here on the listed rows (case-insensitive suffix
        ``@domain``) so that repositories never need substring filters.

        Args:
            domain: Mail domain such as ``example.com``

        Returns:
            Counts of removed addresses

        Raises:
            ValidationError: If ``domain`` is empty or malformed
            BulkOperationError: If any address could not be removed
        """
        suffix = "@" + _normalize_domain(domain)
        subscriptions = await self._repository.list()
        matches = [s.email for s in subscriptions if s.email.lower().endswith(suffix)]
        logger.info(
            f"Domain unsubscribe matched {len(matches)} of {len(subscriptions)} subscriptions",
            extra={"domain": suffix[1:]},
        )
        return await self.delete_subscriptions(matches)

    async def _run_bulk(
        self,
        operation: str,
        emails: list[str],
        apply: Callable[[str], Awaitable[bool]],
    ) -> BulkResult:
        semaphore = asyncio.Semaphore(self._bulk_concurrency)

        async def run_one(email: str) -> bool:
            async with semaphore:
                return await apply(email)

        outcomes = await asyncio.gather(*(run_one(e) for e in emails), return_exceptions=True)

        failures: dict[str, str] = {}
        applied = 0
        for email, outcome in zip(emails, outcomes, strict=True):
            if isinstance(outcome, NewsletterError):
                failures[email] = outcome.message
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome:
                applied += 1

        if failures:
            logger.error(
                f"{operation} failed for {len(failures)} of {len(emails)} addresses",
                extra={"failed_emails": sorted(failures), "succeeded": len(emails) - len(failures)},
            )
            raise BulkOperationError(operation, failures, succeeded=len(emails) - len(failures))

        result = BulkResult(
            operation=operation,
            requested=len(emails),
            applied=applied,
            skipped=len(emails) - applied,
            emails=emails,
        )
        logger.info(
            f"{operation} applied to {result.applied} addresses, skipped {result.skipped}",
            extra={"emails": emails},
        )
        return result
