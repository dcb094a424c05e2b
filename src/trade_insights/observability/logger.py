"""Structured logging with per-analysis trace ids.

Uses structlog for structured logging with JSON output.  Each engine
invocation opens an :func:`analysis_context`, which binds a fresh
``trace_id`` plus caller-supplied fields (snapshot size, clock instant)
so every log line emitted while that snapshot is analysed can be
correlated.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Current trace ID; one is minted lazily outside an analysis."""
    tid = _trace_id.get()
    if not tid:
        tid = uuid.uuid4().hex
        _trace_id.set(tid)
    return tid


@contextmanager
def analysis_context(**fields: Any) -> Iterator[str]:
    """Bind a new trace id and *fields* for the duration of one analysis."""
    tid = uuid.uuid4().hex
    token = _trace_id.set(tid)
    try:
        with structlog.contextvars.bound_contextvars(**fields):
            yield tid
    finally:
        _trace_id.reset(token)


def _add_trace_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add trace_id to every log entry."""
    event_dict["trace_id"] = get_trace_id()
    return event_dict


def _library_defaults() -> None:
    """Route structlog through stdlib logging until setup_logging runs.

    structlog's own default prints every event to stdout.  Going through
    the stdlib logger factory instead keeps library calls quiet unless
    the embedding app configures handlers.
    """
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            _add_trace_id,
            structlog.stdlib.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for the CLI and embedding apps.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine consumption, "console" for humans.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_trace_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Log lines go to stderr so stdout stays clean for CLI output.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


_library_defaults()
