"""Structured logging configuration with structlog.

Call ``configure_logging`` once at application startup. Production renders
JSON lines for log aggregation; every other environment gets the colored
console renderer. Request context (request id, method, path) is merged from
contextvars, so anything bound by the request middleware shows up on every
event logged while that request is being handled.
"""

import logging

import structlog
from structlog.typing import Processor

from taskhub.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog processors and level from settings."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
