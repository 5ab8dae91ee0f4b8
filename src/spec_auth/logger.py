"""structlog based logging setup."""

from __future__ import annotations

import logging
import sys

import structlog

from .config import AuthClientConfig


def configure_logging(
    level: str = "INFO", format: str = "json"
) -> structlog.stdlib.BoundLogger:
    """Configure structlog and return a logger for the host application.

    Args:
        level: log level name ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        format: output format, "json" or "text"
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    return structlog.stdlib.get_logger("spec_auth")


def configure_logging_from_config(
    config: AuthClientConfig,
) -> structlog.stdlib.BoundLogger:
    """Configure logging with the level and format of ``config``."""
    return configure_logging(level=config.log_level, format=config.log_format)
