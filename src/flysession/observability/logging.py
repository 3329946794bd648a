"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from flysession.config.properties import LoggingProperties
from flysession.core.config import Config

SESSION_LOGGER = "flysession"


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    session_level: str | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: If True, output logs as JSON lines. If False, use
            colored console output for development.
        session_level: Optional level for the ``flysession`` loggers only,
            e.g. ``DEBUG`` to trace session lookups without a noisy root.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=_level(level),
        force=True,
    )
    if session_level:
        logging.getLogger(SESSION_LOGGER).setLevel(_level(session_level))


def configure_logging_from_config(config: Config) -> LoggingProperties:
    """Configure logging from the ``flysession.logging`` section and return it."""
    props = config.bind(LoggingProperties)
    configure_logging(
        level=props.level,
        json_output=props.format == "json",
        session_level=props.session_level,
    )
    return props


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger by name."""
    return structlog.get_logger(name)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
