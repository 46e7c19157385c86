"""ASGI middleware establishing the trace context of each request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.trace import TraceContext, trace_scope

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

TRACE_SCOPE_KEY = "newsletter.trace_context"
TRACE_HEADER_SCOPE_KEY = "newsletter.trace_header"


class TraceContextMiddleware:
    """Reuse the caller's trace id or generate one, and echo it back.

    The context is installed for the duration of the request only, so
    concurrent requests never observe each other's trace ids.
    """

    def __init__(self, app: ASGIApp, header_name: str = "x-trace-id"):
        self.app = app
        self.header_name = header_name.lower()
        self._header_key = self.header_name.encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        supplied = None
        for key, value in scope.get("headers", []):
            if key.lower() == self._header_key:
                supplied = value.decode("latin-1")
                break

        context = TraceContext.create(supplied, operation=f"{scope['method']} {scope['path']}")
        scope[TRACE_SCOPE_KEY] = context
        scope[TRACE_HEADER_SCOPE_KEY] = self.header_name
        if supplied is not None and supplied.strip() != context.trace_id:
            logger.warning("Replaced unusable trace id supplied by caller")

        async def send_with_trace(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                if not any(key.lower() == self._header_key for key, _ in headers):
                    headers.append((self._header_key, context.trace_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with trace_scope(context):
            await self.app(scope, receive, send_with_trace)
