"""
Logging configuration for gateway storage.

Provides structured logging through structlog on top of the stdlib
logging module.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


def setup_logging(
    log_level: Optional[str] = None, json_logs: Optional[bool] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            defaults to ``settings.LOG_LEVEL``
        json_logs: Render events as JSON lines instead of console output,
            defaults to ``settings.LOG_JSON``
    """
    if log_level is None:
        log_level = settings.LOG_LEVEL
    if json_logs is None:
        json_logs = settings.LOG_JSON

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """
    Get a structured logger instance for the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog bound logger
    """
    return structlog.get_logger(name)
