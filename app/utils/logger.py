"""Logging utilities for the application.

This module configures structlog once for consistent logging across the application.
"""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger


def configure_logger(environment: str = "local", level: int = logging.INFO) -> None:
    """Configure structlog processors for the running environment.

    Processors applied to every event:
    - Context variables merging (request id, path)
    - Log level addition
    - Stack info rendering
    - Exception info
    - ISO timestamp format
    - Console rendering locally, JSON rendering everywhere else
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if environment == "local"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info
            if environment != "local"
            else structlog.processors.UnicodeDecoder(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: The name of the logger, typically __name__

    Returns:
        A structlog BoundLogger instance
    """
    return structlog.get_logger(name)
