"""
Cache-Related Exceptions

Every remote tier adapter classifies its failures exactly once, into one of
two kinds:

- IGNORABLE: expected absence (object not found). Never logged as an error;
  the orchestrator turns it into a miss or a no-op.
- RECOVERABLE: transient backend failure (network, auth, quota, timeout).
  Logged with context; the orchestrator degrades (serves stale or misses).

Callers branch on ``error.kind`` (or the concrete class) instead of
inspecting driver-specific error fields.

Author: System Architect
Date: 2025-12-08
"""

from enum import Enum

from tiercache.core.exceptions.base import TierCacheError


class ErrorKind(str, Enum):
    """Failure classification shared by all tier adapters."""

    IGNORABLE = "ignorable"
    RECOVERABLE = "recoverable"


class CacheError(TierCacheError):
    """Base exception for cache tier errors."""

    kind: ErrorKind = ErrorKind.RECOVERABLE

    @property
    def tier(self) -> str | None:
        """Tier that raised the error, if recorded in details."""
        return self.details.get("tier")

    @property
    def is_ignorable(self) -> bool:
        return self.kind is ErrorKind.IGNORABLE


class CacheNotFoundError(CacheError):
    """
    Raised when a key is absent from a tier.

    This is control flow, not a failure: reads convert it to a miss and
    deletes treat it as success.
    """

    kind = ErrorKind.IGNORABLE


class CacheBackendError(CacheError):
    """
    Raised when a tier backend fails.

    Common causes:
    - Network connectivity issues
    - Authentication or permission failure
    - Quota or throttling errors
    - Malformed stored payload

    The underlying driver exception is available as ``__cause__`` and in
    ``details["original_error"]``.
    """

    kind = ErrorKind.RECOVERABLE


class CacheTimeoutError(CacheBackendError):
    """
    Raised when a tier call exceeds its time bound or the caller's deadline.
    """
    pass
