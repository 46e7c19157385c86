"""Domain layer for the newsletter service."""

from .exceptions import (
    BulkOperationError,
    ConfigurationError,
    NewsletterError,
    StoreError,
    SubscriptionNotFoundError,
    ValidationError,
)
from .models import BulkResult, Subscription, is_valid_email, validate_email
from .trace import TraceContext, current_trace, trace_scope, traced, traced_span

__all__ = [
    "BulkOperationError",
    "BulkResult",
    "ConfigurationError",
    "NewsletterError",
    "StoreError",
    "Subscription",
    "SubscriptionNotFoundError",
    "TraceContext",
    "ValidationError",
    "is_valid_email",
    "current_trace",
    "trace_scope",
    "traced",
    "traced_span",
    "validate_email",
]
