from __future__ import annotations

from typing import Any

from ..logging_config import log_structured_error
from .internal import (
    CommandOptionError,
    ConfigError,
    InternalError,
    NetworkError,
    StoreError,
)


def classify_error(error: Exception) -> str:
    """Map an exception to the error category used for aggregation."""
    if isinstance(error, NetworkError | OSError | ConnectionError):
        return "network"
    if isinstance(error, StoreError):
        return "store"
    if isinstance(error, ConfigError):
        return "config"
    if isinstance(error, CommandOptionError):
        return "command"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str, error: Exception, context: dict[str, Any] | None = None
) -> None:
    """Logs an error message with the associated exception details.

    The error is categorized and handed to structured logging so repeated
    failures (e.g. an unreachable store) are aggregated and alerted on.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=context,
    )
