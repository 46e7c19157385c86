"""Trace context value object.

A ``TraceContext`` identifies one inbound request (``trace_id``) and the
processing step currently running inside it (``span_id``). It is immutable;
entering a new layer derives a child context instead of mutating this one.

The current context lives in a ``ContextVar``, so every asyncio task and every
executor call made with a copied context sees its own request only.
"""

from __future__ import annotations

import functools
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar, cast

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def new_id() -> str:
    """Generate a fresh random identifier."""
    return str(uuid.uuid4())


class TraceContext(BaseModel):
    """Per-request correlation data threaded through every layer."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    trace_id: str = Field(default_factory=new_id, min_length=1, max_length=128)
    span_id: str = Field(default_factory=new_id)
    parent_span_id: str | None = Field(default=None)
    operation: str | None = Field(default=None)

    @field_validator("trace_id")
    @classmethod
    def validate_trace_id(cls, v: str) -> str:
        """Reject identifiers containing control characters."""
        if any(not ch.isprintable() for ch in v):
            raise ValueError("trace_id must contain printable characters only")
        return v

    @classmethod
    def create(cls, trace_id: str | None = None, operation: str | None = None) -> TraceContext:
        """Build a root context, reusing ``trace_id`` when the caller supplied one.

        Blank or unusable identifiers are replaced with a generated one.
        """
        if trace_id is not None:
            trace_id = trace_id.strip()
        if trace_id:
            try:
                return cls(trace_id=trace_id, operation=operation)
            except ValueError:
                return cls(operation=operation)
        return cls(operation=operation)

    def child(self, operation: str | None = None) -> TraceContext:
        """Derive a context for a nested step with a fresh ``span_id``."""
        return TraceContext(
            trace_id=self.trace_id,
            span_id=new_id(),
            parent_span_id=self.span_id,
            operation=operation or self.operation,
        )

    def as_log_fields(self) -> dict[str, str]:
        """Fields attached to structured log records."""
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "operation": self.operation or "-",
        }


_current: ContextVar[TraceContext | None] = ContextVar("newsletter_trace_context", default=None)


def current_trace() -> TraceContext | None:
    """Return the trace context of the request being processed, if any."""
    return _current.get()


@contextmanager
def trace_scope(context: TraceContext) -> Iterator[TraceContext]:
    """Install ``context`` as the current trace for the enclosed block.

    The trace fields are also bound to structlog's context variables so that
    every log record rendered inside the block carries them.
    """
    token = _current.set(context)
    log_tokens = structlog.contextvars.bind_contextvars(**context.as_log_fields())
    try:
        yield context
    finally:
        structlog.contextvars.reset_contextvars(**log_tokens)
        _current.reset(token)


@contextmanager
def traced_span(operation: str) -> Iterator[TraceContext]:
    """Enter a child span of the current trace.

    Outside a request a new root context is created so that log records still
    carry a correlation id.
    """
    parent = _current.get()
    context = parent.child(operation) if parent else TraceContext.create(operation=operation)
    with trace_scope(context):
        yield context


def traced(operation: str) -> Callable[[F], F]:
    """Decorate a coroutine function so each call runs in its own span."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with traced_span(operation):
                return await func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator
