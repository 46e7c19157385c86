"""Unit tests for the trace context value object and its propagation."""

import asyncio

import pytest
import structlog

from newsletter.domain.trace import (
    TraceContext,
    current_trace,
    trace_scope,
    traced,
    traced_span,
)


class TestTraceContext:
    """Test cases for TraceContext creation."""

    def test_create_generates_ids(self):
        """Test that a root context gets a generated trace and span id."""
        context = TraceContext.create(operation="Subscribe")

        assert context.trace_id
        assert context.span_id
        assert context.trace_id != context.span_id
        assert context.parent_span_id is None
        assert context.operation == "Subscribe"

    def test_create_reuses_supplied_trace_id(self):
        """Test that a caller-supplied trace id is kept."""
        context = TraceContext.create("abc-123")

        assert context.trace_id == "abc-123"

    @pytest.mark.parametrize("supplied", ["", "   ", "bad\nid", "x" * 200])
    def test_create_replaces_unusable_trace_id(self, supplied):
        """Test that blank or malformed trace ids are regenerated."""
        context = TraceContext.create(supplied)

        assert context.trace_id
        assert context.trace_id != supplied

    def test_child_keeps_trace_id(self):
        """Test that child spans share the trace id and link to the parent."""
        root = TraceContext.create("trace-1", operation="root")

        child = root.child("repository.add")

        assert child.trace_id == "trace-1"
        assert child.span_id != root.span_id
        assert child.parent_span_id == root.span_id
        assert child.operation == "repository.add"

    def test_as_log_fields(self):
        """Test the fields attached to log records."""
        context = TraceContext(trace_id="t", span_id="s")

        assert context.as_log_fields() == {"trace_id": "t", "span_id": "s", "operation": "-"}


class TestTracePropagation:
    """Test cases for the request-scoped current trace."""

    def test_no_trace_outside_scope(self):
        """Test that no trace is current outside a request."""
        assert current_trace() is None

    def test_scope_installs_and_restores(self):
        """Test that a scope sets the context and resets it on exit."""
        context = TraceContext.create("trace-1")

        with trace_scope(context):
            assert current_trace() is context

        assert current_trace() is None

    def test_span_nests_under_current_trace(self):
        """Test that traced_span derives a child of the current context."""
        root = TraceContext.create("trace-1")

        with trace_scope(root), traced_span("service.subscribe") as span:
            assert current_trace() is span
            assert span.trace_id == "trace-1"
            assert span.parent_span_id == root.span_id

    def test_span_without_request_creates_root(self):
        """Test that a span outside a request still gets a trace id."""
        with traced_span("startup") as span:
            assert span.parent_span_id is None
            assert span.trace_id

    @pytest.mark.asyncio
    async def test_traced_decorator_runs_in_child_span(self):
        """Test that decorated coroutines see their own span."""
        seen = []

        @traced("repository.list")
        async def work():
            seen.append(current_trace())

        root = TraceContext.create("trace-1")
        with trace_scope(root):
            await work()

        assert seen[0].trace_id == "trace-1"
        assert seen[0].operation == "repository.list"
        assert seen[0].parent_span_id == root.span_id

    @pytest.mark.asyncio
    async def test_concurrent_tasks_do_not_share_trace(self):
        """Test that concurrent requests keep separate trace ids."""

        async def handle(trace_id):
            with trace_scope(TraceContext.create(trace_id)):
                await asyncio.sleep(0.01)
                return current_trace().trace_id

        results = await asyncio.gather(handle("req-1"), handle("req-2"), handle("req-3"))

        assert results == ["req-1", "req-2", "req-3"]

    def test_scope_binds_log_context(self):
        """Test that trace fields are bound for log rendering and unbound on exit."""
        context = TraceContext.create("trace-1", operation="GET /health")

        with trace_scope(context):
            bound = structlog.contextvars.get_contextvars()
            assert bound["trace_id"] == "trace-1"
            assert bound["span_id"] == context.span_id
            assert bound["operation"] == "GET /health"

        assert "trace_id" not in structlog.contextvars.get_contextvars()

    def test_nested_span_rebinds_and_restores_span_id(self):
        """Test that leaving a child span restores the parent's log fields."""
        root = TraceContext.create("trace-1")

        with trace_scope(root):
            with traced_span("service.list_subscriptions") as span:
                assert structlog.contextvars.get_contextvars()["span_id"] == span.span_id
            assert structlog.contextvars.get_contextvars()["span_id"] == root.span_id
