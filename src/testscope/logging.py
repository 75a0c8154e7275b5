"""Structured logging for testscope.

Log lines go to stderr by default so that commands writing JSON to stdout
stay pipeable.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, TextIO

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor, WrappedLogger

# Run id of the report currently being built; set by build_view_model
run_id_ctx: ContextVar[str] = ContextVar("run_id", default="")


def add_run_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp events with the run id of the report being built, if any."""
    run_id = run_id_ctx.get()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Set up structlog for the CLI.

    Args:
        log_level: Minimum level name; unknown names fall back to INFO.
        json_format: Render one JSON object per line instead of console text.
        stream: Where log lines go (defaults to sys.stderr).
    """
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            add_run_id,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a lazy logger for ``name``.

    Module-level loggers resolve the configuration when they first emit, so
    a later configure_logging call still applies to them. The name is bound
    as ``logger_name``.
    """
    return structlog.get_logger(name, logger_name=name)
