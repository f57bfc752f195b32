"""
Structured logging configuration using structlog.

Provides JSON-formatted logs for production (searchable/aggregatable)
and human-readable output for development and tests.

Usage:
    from menu_analytics.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("event ingested", restaurant_id="tonys-pizza", event_type="page_view")

Output in production (JSON):
    {"event": "event ingested", "restaurant_id": "tonys-pizza", "event_type": "page_view",
     "timestamp": "2024-01-01T12:00:00Z", "level": "info", "logger": "menu_analytics.api.analytics"}

Output in development:
    2024-01-01 12:00:00 [info     ] event ingested    restaurant_id=tonys-pizza event_type=page_view
"""

import logging
import sys
from typing import Any

import structlog

from menu_analytics.core.config import settings

IS_TEST = "pytest" in sys.modules


def configure_logging() -> None:
    """Configure structlog with appropriate processors for the environment."""

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.LOG_JSON:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=not IS_TEST),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging (uvicorn, sqlalchemy) to stdout as well
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.INFO,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A structlog bound logger with JSON/console output based on environment
    """
    return structlog.get_logger(name)


# Configure on import
configure_logging()
