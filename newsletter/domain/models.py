"""Domain models for the newsletter service.

Entities are immutable Pydantic v2 models and carry no infrastructure
dependencies.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .exceptions import ValidationError


def is_valid_email(email: str) -> bool:
    """Check the minimal email validity predicate.

    An address is valid when it contains exactly one ``@``, the local part is
    non-empty, and the domain part has at least one ``.`` with every
    dot-separated label non-empty.

    Args:
        email: Address to check

    Returns:
        True if the address satisfies the predicate
    """
    if not isinstance(email, str) or email.count("@") != 1:
        return False

    local, domain = email.split("@")
    if not local or "." not in domain:
        return False

    return all(domain.split("."))


def validate_email(email: str) -> str:
    """Return ``email`` unchanged or raise ``ValidationError``.

    Args:
        email: Address to validate

    Returns:
        The validated address

    Raises:
        ValidationError: If the address fails the validity predicate
    """
    if not is_valid_email(email):
        raise ValidationError(f"Invalid email format: {email!r}", field="email", value=email)
    return email


def utc_now() -> datetime:
    """Factory for timezone-aware creation timestamps."""
    return datetime.now(UTC)


class Subscription(BaseModel):
    """A single newsletter subscription, one per email address."""

    model_config = ConfigDict(strict=True, frozen=True)

    email: str = Field(..., min_length=1, description="Subscriber address, unique key")
    active: bool = Field(default=True, description="Whether mail should be delivered")
    created_at: datetime = Field(
        default_factory=utc_now, description="Creation timestamp, never mutated"
    )

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v: Any) -> Any:
        """Treat naive timestamps coming back from the store as UTC."""
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()

    def with_active(self, active: bool) -> Subscription:
        """Return a copy with ``active`` replaced; the only mutable field."""
        return self.model_copy(update={"active": active})


class BulkResult(BaseModel):
    """Outcome of a bulk operation that completed without failures."""

    model_config = ConfigDict(frozen=True)

    operation: str = Field(..., description="Bulk operation name")
    requested: int = Field(..., ge=0, description="Distinct addresses in the request")
    applied: int = Field(..., ge=0, description="Addresses whose row was changed")
    skipped: int = Field(default=0, ge=0, description="Addresses with no matching row")
    emails: list[str] = Field(default_factory=list, description="Addresses processed")
