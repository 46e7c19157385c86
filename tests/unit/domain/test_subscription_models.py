"""Unit tests for the subscription domain model and email validation."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from newsletter.domain.exceptions import ValidationError
from newsletter.domain.models import BulkResult, Subscription, is_valid_email, validate_email


class TestEmailValidation:
    """Test cases for the email validity predicate."""

    @pytest.mark.parametrize(
        "email",
        [
            "user@example.com",
            "a@x.com",
            "first.last+tag@mail.example.co.uk",
            "user1@bulk.com",
        ],
    )
    def test_valid_emails(self, email):
        """Test addresses that satisfy the predicate."""
        assert is_valid_email(email)
        assert validate_email(email) == email

    @pytest.mark.parametrize(
        "email",
        [
            "not-an-email",
            "",
            "@example.com",
            "user@",
            "user@localhost",
            "user@@example.com",
            "a@b@example.com",
            "user@.com",
            "user@example.",
            "user@example..com",
        ],
    )
    def test_invalid_emails(self, email):
        """Test addresses that fail the predicate."""
        assert not is_valid_email(email)
        with pytest.raises(ValidationError) as exc_info:
            validate_email(email)
        assert exc_info.value.error_code == "INVALID_ARGUMENT"
        assert exc_info.value.details["field"] == "email"

    def test_non_string_is_invalid(self):
        """Test that non-string input is rejected rather than crashing."""
        assert not is_valid_email(None)  # type: ignore[arg-type]


class TestSubscription:
    """Test cases for the Subscription entity."""

    def test_defaults(self):
        """Test a new subscription is active with an aware timestamp."""
        subscription = Subscription(email="user@example.com")

        assert subscription.active is True
        assert subscription.created_at.tzinfo is not None

    def test_is_immutable(self):
        """Test that fields cannot be assigned after creation."""
        subscription = Subscription(email="user@example.com")

        with pytest.raises(PydanticValidationError):
            subscription.active = False  # type: ignore[misc]

    def test_with_active_keeps_other_fields(self):
        """Test that toggling active preserves email and created_at."""
        created = datetime(2024, 1, 1, tzinfo=UTC)
        subscription = Subscription(email="user@example.com", created_at=created)

        inactive = subscription.with_active(False)

        assert inactive.active is False
        assert inactive.email == subscription.email
        assert inactive.created_at == created
        assert subscription.active is True

    def test_naive_timestamp_is_treated_as_utc(self):
        """Test naive store timestamps become UTC-aware."""
        subscription = Subscription(email="user@example.com", created_at=datetime(2024, 1, 1))

        assert subscription.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_serializes_timestamp_as_iso(self):
        """Test JSON dump uses ISO timestamps."""
        created = datetime(2024, 1, 1, 12, 30, tzinfo=UTC)
        data = Subscription(email="user@example.com", created_at=created).model_dump()

        assert data["created_at"] == created.isoformat()

    def test_empty_email_rejected(self):
        """Test that an empty email cannot be stored in the entity."""
        with pytest.raises(PydanticValidationError):
            Subscription(email="")


class TestBulkResult:
    """Test cases for BulkResult."""

    def test_counts_must_be_non_negative(self):
        """Test that negative counts are rejected."""
        with pytest.raises(PydanticValidationError):
            BulkResult(operation="delete_subscriptions", requested=-1, applied=0)
