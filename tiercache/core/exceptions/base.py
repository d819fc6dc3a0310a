"""
Base Exception Class

This module contains ONLY the base exception class that all other exceptions inherit from.
All specialized exceptions are in their respective themed modules.

Author: System Architect
Date: 2025-12-08
"""

from typing import Any


class TierCacheError(Exception):
    """
    Base exception for all tiered cache errors.

    Attributes:
        message: Error message
        details: Additional error details (dict)

    Example:
        raise CacheBackendError(
            "Object store GET failed",
            details={"object_key": "cache/default/index.cache"},
        )
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()  # Create a copy to prevent external modification
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging/API responses.

        Returns:
            Dict with error_type, message and details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

    def with_context(self, **context) -> "TierCacheError":
        """
        Add additional context to the error details.

        Returns:
            Self (for method chaining)
        """
        self.details.update(context)
        return self

    def __repr__(self) -> str:
        details_str = f", details={self.details}" if self.details else ""
        return f"{self.__class__.__name__}(message='{self.message}'{details_str})"

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        message: str | None = None,
        **details
    ) -> "TierCacheError":
        """
        Create an error from another exception.

        Useful for wrapping third-party exceptions (botocore, redis) with
        additional context. The original exception is kept as ``__cause__``.

        Example:
            >>> try:
            ...     client.get_object(Bucket=bucket, Key=key)
            ... except ClientError as e:
            ...     raise CacheBackendError.from_exception(e, object_key=key)
        """
        error_message = message or str(exc) or exc.__class__.__name__
        error_details = {
            "original_error": exc.__class__.__name__,
            "original_message": str(exc),
            **details
        }
        error = cls(error_message, details=error_details)
        error.__cause__ = exc
        return error


# Configuration exception (kept here as it's fundamental)
class ConfigurationError(TierCacheError):
    """Raised when configuration is invalid or missing."""
    pass
