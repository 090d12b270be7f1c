"""Structured logging for the record store.

The store is embedded in a host process, so logs go to stderr by
default and every event carries the name of the emitting module.
Loggers are created at import time, before any call to setup_logging(),
which is why they are not cached on first use.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from record_store.infrastructure.config import ObservabilityConfig


def _rename_logger_field(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Expose the bound ``_name`` as ``logger`` and drop empty names."""
    name = event_dict.pop("_name", None)
    if name:
        event_dict["logger"] = name
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for the record store.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' for one object per line, 'console' for humans
        stream: Output stream (default: stderr)
    """
    numeric_level = getattr(logging, level.upper())
    output = stream or sys.stderr

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _rename_logger_field,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )


def configure_logging(config: ObservabilityConfig, stream: TextIO | None = None) -> None:
    """Apply the log level and format from an observability config."""
    setup_logging(config.log_level, config.log_format, stream=stream)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger.

    Args:
        name: Emitting module, reported as the ``logger`` field
        **initial_context: Fields bound to every event (e.g. ``dataset``)
    """
    return structlog.get_logger(_name=name, **initial_context)
