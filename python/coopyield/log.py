"""
coopyield structured logging.

Library loggers are structlog BoundLoggers wrapped around stdlib loggers under
the ``coopyield`` namespace. Nothing is configured on import: with stdlib
defaults only WARNING and above surface, and ``filter_by_level`` drops
disabled events before any other processor runs.

Usage:
    from coopyield.log import get_logger, setup_logging

    setup_logging("DEBUG")           # applications / benchmarks only
    log = get_logger(__name__)
    log.debug("coop.yield.scheduled", tier="IMMEDIATE", micro_elapsed=8.4)
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any, Optional

import structlog

ROOT_LOGGER = "coopyield"

_shared_processors: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Attach a rendering handler to the ``coopyield`` logger.

    Args:
        level:       DEBUG | INFO | WARNING | ERROR | CRITICAL
        json_format: JSON lines if True, coloured console output otherwise.
        stream:      Target stream, stderr by default.

    Returns:
        The installed handler, so callers can remove it again.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_shared_processors,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(numeric_level)
    root.addHandler(handler)
    return handler


def get_logger(name: str = ROOT_LOGGER, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a bound logger with optional initial context values.

    Example:
        log = get_logger(__name__, component="tickets")
        log.debug("coop.ticket.fired", waiters=2)
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name),
        processors=[structlog.stdlib.filter_by_level]
        + _shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger
