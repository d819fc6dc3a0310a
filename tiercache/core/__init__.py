"""
Core Module

Foundational components: configuration, logging, exceptions and tier interfaces.
"""

from .exceptions import (
    CacheBackendError,
    CacheError,
    CacheNotFoundError,
    CacheTimeoutError,
    ConfigurationError,
    ErrorKind,
    TierCacheError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_tier,
    set_request_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "log_tier",
    "TierCacheError",
    "ConfigurationError",
    "ErrorKind",
    "CacheError",
    "CacheNotFoundError",
    "CacheBackendError",
    "CacheTimeoutError",
]
