"""Structured logging setup."""

import logging
import sys

import structlog

from docsearch.core.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog processors and renderer for the application."""
    if settings.LOG_FORMAT == "json":
        renderer = structlog.processors.JSONRenderer()
    elif settings.LOG_FORMAT == "console" or sys.stdout.isatty():
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.LOG_LEVEL)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
