"""Tests for structured logging setup."""

import io
import json
import logging

import pytest

from newsletter.domain.trace import TraceContext, trace_scope
from newsletter.infrastructure.logging_config import build_formatter, configure_logging


@pytest.fixture
def json_stream():
    """Capture ``newsletter`` records rendered as JSON lines."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_formatter("json"))
    logger = logging.getLogger("newsletter.test")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield stream
    logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def _lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestJsonRendering:
    """Test cases for the JSON formatter."""

    def test_renders_fields_and_extras(self, json_stream):
        """Test the JSON line layout."""
        logging.getLogger("newsletter.test").info(
            "stored", extra={"email": "a@x.com", "rows_affected": 1}
        )

        (payload,) = _lines(json_stream)
        assert payload["message"] == "stored"
        assert payload["level"] == "info"
        assert payload["service"] == "newsletter"
        assert payload["logger"] == "newsletter.test"
        assert payload["email"] == "a@x.com"
        assert payload["rows_affected"] == 1
        assert payload["lineno"] > 0
        assert "timestamp" in payload
        assert "trace_id" not in payload

    def test_renders_trace_fields_inside_scope(self, json_stream):
        """Test that bound trace fields are merged into records."""
        context = TraceContext.create("abc-123", operation="GET /x")

        with trace_scope(context):
            logging.getLogger("newsletter.test").info("inside")
        logging.getLogger("newsletter.test").info("outside")

        inside, outside = _lines(json_stream)
        assert inside["trace_id"] == "abc-123"
        assert inside["span_id"] == context.span_id
        assert inside["operation"] == "GET /x"
        assert "trace_id" not in outside

    def test_includes_exception(self, json_stream):
        """Test that exception text is rendered."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logging.getLogger("newsletter.test").exception("failed")

        (payload,) = _lines(json_stream)
        assert "RuntimeError: boom" in payload["exception"]

    def test_text_format(self):
        """Test console rendering."""
        record = logging.LogRecord("newsletter.test", logging.INFO, __file__, 1, "hello", (), None)

        rendered = build_formatter("text").format(record)

        assert "hello" in rendered
        assert not rendered.lstrip().startswith("{")


class TestConfigureLogging:
    """Test cases for configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("newsletter")
        handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
        yield
        logger.handlers = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_replaces_own_handler(self):
        """Test that repeated calls do not stack handlers."""
        configure_logging("INFO", "json")
        logger = configure_logging("DEBUG", "text")

        own = [h for h in logger.handlers if getattr(h, "_newsletter_handler", False)]
        assert len(own) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_emits_json_with_trace(self):
        """Test an end-to-end JSON line with trace correlation."""
        logger = configure_logging("INFO", "json")
        stream = io.StringIO()
        handler = next(h for h in logger.handlers if getattr(h, "_newsletter_handler", False))
        handler.setStream(stream)

        with trace_scope(TraceContext.create("trace-xyz")):
            logging.getLogger("newsletter.application").info(
                "Subscribed email", extra={"email": "a@x.com"}
            )

        payload = json.loads(stream.getvalue().strip())
        assert payload["trace_id"] == "trace-xyz"
        assert payload["email"] == "a@x.com"
