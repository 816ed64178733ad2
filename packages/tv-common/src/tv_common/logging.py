"""
Structured logging setup for TranscriptVault.

Configures structlog for JSON-formatted structured logging. Every log
line includes timestamp, level, logger name and event. The request
correlation id is bound through ``structlog.contextvars`` so that every
line emitted while serving a request carries it.
"""

from __future__ import annotations

import logging
import sys
from uuid import uuid4

import structlog

CORRELATION_KEY = "correlation_id"


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Install the structlog processor chain and stdlib root handler.

    Args:
        level: Minimum log level name.
        json_output: Emit JSON lines; ``False`` renders for a console.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_correlation_id(correlation_id: str | None = None) -> str:
    """Bind *correlation_id* (or a fresh UUID4) to the logging context.

    Returns:
        The correlation id that was bound.
    """
    value = correlation_id or str(uuid4())
    structlog.contextvars.bind_contextvars(**{CORRELATION_KEY: value})
    return value


def clear_correlation_id() -> None:
    """Remove the correlation id from the logging context."""
    structlog.contextvars.unbind_contextvars(CORRELATION_KEY)
