"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ...domain.models import BulkResult, Subscription


class SubscribeRequest(BaseModel):
    """Body of a subscribe call; the address is validated by the service."""

    model_config = ConfigDict(strict=True)

    email: str = Field(..., description="Address to subscribe")


class UpdateStatusRequest(BaseModel):
    """Body of a bulk status update."""

    model_config = ConfigDict(strict=True)

    emails: list[str] = Field(..., description="Addresses to update")
    active: bool = Field(..., description="New status")


class DeleteSubscriptionsRequest(BaseModel):
    """Body of a bulk delete."""

    model_config = ConfigDict(strict=True)

    emails: list[str] = Field(..., description="Addresses to remove")


class UnsubscribeDomainRequest(BaseModel):
    """Body of a domain-wide unsubscribe."""

    model_config = ConfigDict(strict=True)

    domain: str = Field(..., description="Mail domain, e.g. example.com")


class SubscriptionResponse(BaseModel):
    """A subscription as returned to callers."""

    email: str
    active: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, subscription: Subscription) -> SubscriptionResponse:
        return cls(
            email=subscription.email,
            active=subscription.active,
            created_at=subscription.created_at,
        )


class ListResponse(BaseModel):
    """All subscriptions."""

    subscriptions: list[SubscriptionResponse]


class StatusResponse(BaseModel):
    """Whether an address has an active subscription."""

    email: str
    active: bool


class AckResponse(BaseModel):
    """Acknowledgement of a mutating call."""

    status: Literal["ok"] = "ok"
    trace_id: str | None = Field(None, description="Trace id of the request")


class BulkAckResponse(AckResponse):
    """Acknowledgement of a bulk call with its counts."""

    requested: int
    applied: int
    skipped: int

    @classmethod
    def from_result(cls, result: BulkResult, trace_id: str | None) -> BulkAckResponse:
        return cls(
            trace_id=trace_id,
            requested=result.requested,
            applied=result.applied,
            skipped=result.skipped,
        )


class ErrorDetail(BaseModel):
    """Standard error detail model."""

    model_config = ConfigDict(strict=True, frozen=True)

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    trace_id: str | None = Field(None, description="Trace ID for debugging")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    model_config = ConfigDict(strict=True, frozen=True)

    error: ErrorDetail = Field(..., description="Error information")
