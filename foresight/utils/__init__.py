"""Utility modules for logging and request tracing."""

from foresight.utils.logging import configure_logging, get_logger, log_operation

__all__ = ["configure_logging", "get_logger", "log_operation"]
