"""
Structured logging configuration using structlog.
Provides request-scoped logging with automatic context injection.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor

from foresight.config import get_settings

SERVICE_NAME = "foresight"


def add_service(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every record with the emitting service."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging for the application.
    Uses JSON format in production, console format in development.
    """
    settings = get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    # request_id arrives through contextvars, bound by the tracing middleware
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service,
            add_severity,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def log_operation(logger: structlog.BoundLogger, operation: str, **context: Any) -> Iterator[None]:
    """
    Bind context for one engine operation and log how it ended.

    Emits ``<operation>_finished`` with ``duration_ms`` on success, or
    ``<operation>_failed`` with the exception type before re-raising.

    Args:
        logger: Structlog logger instance
        operation: Operation name used as the event prefix
        **context: Fields bound to every record logged inside the block
    """
    started = time.perf_counter()
    with structlog.contextvars.bound_contextvars(**context):
        try:
            yield
        except Exception as e:
            logger.warning(
                f"{operation}_failed",
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        logger.info(
            f"{operation}_finished",
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
