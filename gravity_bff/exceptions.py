"""
Exception hierarchy for the Gravity BFF stream service.

Caller-correctable errors (bad filter, bad cursor) are raised before any I/O.
Storage errors propagate to the caller. Cache errors are raised by cache
backends and absorbed by the stream service.
"""

from typing import Any, Dict, Optional


class StreamError(Exception):
    """Base class for all stream service errors."""

    error_code = "internal_error"

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.context = context or {}

    def to_log_string(self) -> str:
        """Format error for log output."""
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.error_code}] {self.message} ({details})"
        return f"[{self.error_code}] {self.message}"


class InvalidFilter(StreamError):
    """Unrecognized stream filter token."""

    error_code = "validation_failed"


class InvalidCursor(StreamError):
    """Pagination cursor could not be decoded."""

    error_code = "validation_failed"


class StorageError(StreamError):
    """The item store is unavailable or a query failed."""

    error_code = "internal_error"


class CacheError(StreamError):
    """Cache connectivity or serialization failure."""

    error_code = "cache_error"


def handle_unexpected_error(error: Exception) -> StreamError:
    """Wrap an arbitrary exception so it can be logged uniformly."""
    if isinstance(error, StreamError):
        return error
    return StreamError(
        f"{type(error).__name__}: {error}",
        user_message="An unexpected error occurred",
    )
