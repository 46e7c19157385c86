"""Domain exceptions for the newsletter service.

Every error raised by the service derives from ``NewsletterError`` and carries
a stable ``error_code`` that the transport layer maps to a response class.
"""

from __future__ import annotations

from typing import Any


class NewsletterError(Exception):
    """Base exception for all newsletter errors."""

    def __init__(self, message: str, error_code: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(NewsletterError):
    """Raised when input fails a domain rule, e.g. a malformed email."""

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
            details["value"] = value
        super().__init__(message, "INVALID_ARGUMENT", details)


class SubscriptionNotFoundError(NewsletterError):
    """Raised by the transport layer when a requested subscription is absent."""

    def __init__(self, email: str):
        super().__init__(f"Subscription '{email}' not found", "NOT_FOUND", {"email": email})
        self.email = email


class StoreError(NewsletterError):
    """Raised when the backing store fails or cannot be reached.

    The original exception is chained as ``__cause__``; ``details`` holds the
    operation and a short description for logs only.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        email: str | None = None,
        cause: BaseException | None = None,
    ):
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if email:
            details["email"] = email
        if cause is not None:
            details["cause"] = f"{type(cause).__name__}: {cause}"
        super().__init__(message, "STORE_ERROR", details)
        self.operation = operation
        self.email = email


class BulkOperationError(StoreError):
    """Raised after a bulk call when one or more addresses failed.

    All other addresses of the batch have been attempted by the time this is
    raised.
    """

    def __init__(self, operation: str, failures: dict[str, str], succeeded: int):
        super().__init__(
            f"{operation} failed for {len(failures)} of {len(failures) + succeeded} addresses",
            operation=operation,
        )
        self.failures = failures
        self.succeeded = succeeded
        self.details["failed_emails"] = sorted(failures)
        self.details["succeeded"] = succeeded


class ConfigurationError(NewsletterError):
    """Raised when the service configuration is invalid or missing."""

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")
