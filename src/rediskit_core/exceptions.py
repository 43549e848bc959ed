"""Custom exception hierarchy for rediskit-cache."""

from __future__ import annotations


class RediskitError(Exception):
    """Base exception for all rediskit-cache errors."""


class CacheError(RediskitError):
    """Raised when a cache operation against the store fails.

    Carries the operation name (``GET``, ``SET``, ...), the underlying
    message and the original error so callers can inspect the cause.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        original_error: BaseException | None = None,
    ) -> None:
        """Build the error from an operation name and underlying message."""
        super().__init__(f"Cache {operation} operation failed: {message}")
        self.operation = operation
        self.message = message
        self.original_error: BaseException = (
            original_error if original_error is not None else RuntimeError(message)
        )


class SerializationError(RediskitError):
    """Raised when a value cannot be encoded for storage."""


class ConnectionConfigError(RediskitError):
    """Raised when connection settings cannot be resolved to a client."""
