"""API routes for newsletter subscriptions.

Routes translate requests into application service calls. Failures propagate
as domain exceptions and are mapped to responses by ``error_handlers``. Every
operation logs one event when it starts and one when it ends.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import APIRouter, Depends, status

from ...application.subscription_service import SubscriptionService
from ...domain.exceptions import SubscriptionNotFoundError
from ...domain.trace import TraceContext, traced_span
from .dependencies import get_subscription_service
from .error_handlers import classify
from .schemas import (
    AckResponse,
    BulkAckResponse,
    DeleteSubscriptionsRequest,
    ListResponse,
    StatusResponse,
    SubscribeRequest,
    SubscriptionResponse,
    UnsubscribeDomainRequest,
    UpdateStatusRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/subscriptions", tags=["Subscriptions"])
health_router = APIRouter(tags=["Health"])


@dataclass
class OperationScope:
    """Handle of a logged operation; routes may record a non-error outcome."""

    trace: TraceContext
    outcome: str = "ok"

    @property
    def trace_id(self) -> str:
        return self.trace.trace_id


@asynccontextmanager
async def operation_log(
    operation: str, emails: Sequence[str] | str | None = None
) -> AsyncIterator[OperationScope]:
    """Log the start and the end of a transport-level operation."""
    affected = [emails] if isinstance(emails, str) else list(emails or [])
    started = time.perf_counter()

    with traced_span(f"api.{operation}") as context:
        scope = OperationScope(trace=context)
        logger.info(
            f"Starting {operation}",
            extra={"rpc_operation": operation, "emails": affected, "status": "start"},
        )
        try:
            yield scope
        except Exception as e:
            logger.warning(
                f"{operation} failed",
                extra={
                    "rpc_operation": operation,
                    "emails": affected,
                    "status": "error",
                    "error_class": classify(e),
                    "error_type": type(e).__name__,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                },
            )
            raise
        logger.info(
            f"Completed {operation}",
            extra={
                "rpc_operation": operation,
                "emails": affected,
                "status": "success",
                "outcome": scope.outcome,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )


@router.post("", response_model=AckResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    body: SubscribeRequest,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> AckResponse:
    """Subscribe an email address."""
    async with operation_log("Subscribe", body.email) as scope:
        await service.subscribe(body.email)
    return AckResponse(trace_id=scope.trace_id)


@router.get("", response_model=ListResponse)
async def list_subscriptions(
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> ListResponse:
    """List all subscriptions."""
    async with operation_log("List"):
        subscriptions = await service.list_subscriptions()
    return ListResponse(subscriptions=[SubscriptionResponse.from_domain(s) for s in subscriptions])


@router.put("/status", response_model=BulkAckResponse)
async def update_status(
    body: UpdateStatusRequest,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> BulkAckResponse:
    """Set the status of several existing subscriptions."""
    async with operation_log("UpdateStatus", body.emails) as scope:
        result = await service.update_subscription_status(body.emails, body.active)
    return BulkAckResponse.from_result(result, scope.trace_id)


@router.post("/delete", response_model=BulkAckResponse)
async def delete_subscriptions(
    body: DeleteSubscriptionsRequest,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> BulkAckResponse:
    """Remove several subscriptions."""
    async with operation_log("DeleteSubscriptions", body.emails) as scope:
        result = await service.delete_subscriptions(body.emails)
    return BulkAckResponse.from_result(result, scope.trace_id)


@router.post("/unsubscribe-domain", response_model=BulkAckResponse)
async def unsubscribe_domain(
    body: UnsubscribeDomainRequest,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> BulkAckResponse:
    """Remove every subscription of a mail domain."""
    async with operation_log("UnsubscribeDomain") as scope:
        result = await service.unsubscribe_domain(body.domain)
    return BulkAckResponse.from_result(result, scope.trace_id)


@router.get("/{email}/status", response_model=StatusResponse)
async def get_status(
    email: str,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> StatusResponse:
    """Tell whether an address is actively subscribed."""
    async with operation_log("GetStatus", email):
        active = await service.get_subscription_status(email)
    return StatusResponse(email=email, active=active)


@router.get("/{email}", response_model=SubscriptionResponse)
async def get_subscription(
    email: str,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> SubscriptionResponse:
    """Get the subscription of an address."""
    async with operation_log("Get", email) as scope:
        subscription = await service.get_subscription(email)
        if subscription is None:
            scope.outcome = "not_found"
    if subscription is None:
        raise SubscriptionNotFoundError(email)
    return SubscriptionResponse.from_domain(subscription)


@router.delete("/{email}", response_model=AckResponse)
async def unsubscribe(
    email: str,
    service: SubscriptionService = Depends(get_subscription_service),  # noqa: B008
) -> AckResponse:
    """Unsubscribe an email address."""
    async with operation_log("Unsubscribe", email) as scope:
        await service.unsubscribe(email)
    return AckResponse(trace_id=scope.trace_id)


@health_router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}
