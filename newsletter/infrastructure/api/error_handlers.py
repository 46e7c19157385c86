"""Centralized error handling for the API layer.

This module maps domain exceptions to HTTP responses. Store failures are
logged with their full cause but reported to callers as a generic internal
error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.exceptions import (
    NewsletterError,
    StoreError,
    SubscriptionNotFoundError,
    ValidationError,
)
from ...domain.trace import current_trace
from .middleware import TRACE_HEADER_SCOPE_KEY, TRACE_SCOPE_KEY
from .schemas import ErrorDetail, ErrorResponse

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred"

# Mapping of domain exception types to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[NewsletterError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    SubscriptionNotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def classify(exc: BaseException) -> str:
    """Name the caller-visible failure class of ``exc``."""
    if isinstance(exc, ValidationError):
        return "invalid_argument"
    if isinstance(exc, SubscriptionNotFoundError):
        return "not_found"
    return "internal"


def status_for(exc: NewsletterError) -> int:
    """HTTP status for a domain exception, falling back along the MRO."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def trace_id_for(request: Request) -> str | None:
    """Trace id of the request being answered."""
    context = current_trace() or request.scope.get(TRACE_SCOPE_KEY)
    return context.trace_id if context is not None else None


def create_error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response.

    Args:
        request: The request being answered
        status_code: HTTP status code
        code: Error code
        message: Caller-visible message
        details: Additional error details

    Returns:
        JSONResponse with error information
    """
    trace_id = trace_id_for(request)
    error_response = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details, trace_id=trace_id)
    )
    # Responses built by ServerErrorMiddleware bypass the trace middleware
    headers = None
    if trace_id is not None:
        headers = {request.scope.get(TRACE_HEADER_SCOPE_KEY, "x-trace-id"): trace_id}
    return JSONResponse(
        status_code=status_code, content=error_response.model_dump(), headers=headers
    )


async def domain_exception_handler(request: Request, exc: NewsletterError) -> JSONResponse:
    """Handle domain-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The domain exception

    Returns:
        JSONResponse with appropriate status code and error details
    """
    status_code = status_for(exc)

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            f"Internal failure on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc,
            extra={"error_code": exc.error_code, "error_details": exc.details},
        )
        return create_error_response(request, status_code, "INTERNAL", INTERNAL_ERROR_MESSAGE)

    logger.warning(
        f"Domain exception on {request.method} {request.url.path}: "
        f"{exc.message} (code: {exc.error_code})"
    )
    return create_error_response(request, status_code, exc.error_code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies and parameters.

    Args:
        request: The request that caused the exception
        exc: The validation exception

    Returns:
        JSONResponse with validation error details
    """
    errors = exc.errors()
    logger.warning(f"Validation error on {request.method} {request.url.path}: {len(errors)} errors")

    first_error = errors[0] if errors else {}
    field = ".".join(str(loc) for loc in first_error.get("loc", []))
    msg = first_error.get("msg", "Invalid input data")

    details = {
        "field": field,
        "errors": [
            {
                "field": ".".join(str(loc) for loc in e.get("loc", [])),
                "message": e.get("msg", ""),
                "type": e.get("type", ""),
            }
            for e in errors
        ],
    }
    return create_error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        f"Validation failed for field '{field}': {msg}",
        details,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions with consistent format."""
    logger.info(
        f"HTTP exception on {request.method} {request.url.path}: {exc.status_code} - {exc.detail}"
    )
    return create_error_response(request, exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking their details."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return create_error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL", INTERNAL_ERROR_MESSAGE
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(NewsletterError, domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)
