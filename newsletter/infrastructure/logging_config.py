"""Structured logging setup for the newsletter service.

Modules log through stdlib ``logging`` loggers; records are rendered by a
structlog ``ProcessorFormatter`` either as one JSON object per line or as
plain console text. The trace fields bound by ``trace_scope`` are merged from
structlog's context variables, and fields passed through
``logger.info(..., extra={...})`` become top-level keys.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.processors import CallsiteParameter
from structlog.typing import EventDict, Processor

SERVICE_NAME = "newsletter"

_HANDLER_MARK = "_newsletter_handler"


def add_service_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the service name."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def shared_processors() -> list[Processor]:
    """Processors applied to every stdlib record before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.CallsiteParameterAdder(
            {CallsiteParameter.PATHNAME, CallsiteParameter.LINENO}
        ),
        add_service_name,
    ]


def build_formatter(fmt: str = "json") -> structlog.stdlib.ProcessorFormatter:
    """Create the record formatter for ``json`` or ``text`` output."""
    if fmt == "json":
        renderers: list[Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(default=str),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def configure_logging(level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """Install the service log handler on the ``newsletter`` logger.

    Calling this again replaces the previously installed handler.

    Args:
        level: Logging level name
        fmt: ``json`` or ``text``

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(SERVICE_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(fmt))
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
