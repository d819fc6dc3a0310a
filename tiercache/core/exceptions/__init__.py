"""
Exception Module

Structured exception hierarchy for the tiered cache service.

Module Structure:
-----------------
- **base.py**: TierCacheError base class + ConfigurationError
- **cache.py**: ErrorKind and the tier failure taxonomy

Usage:
------
```python
from tiercache.core.exceptions import CacheBackendError, CacheNotFoundError, ErrorKind

try:
    entry = await object_store.get(key, CacheKind.CACHE)
except CacheNotFoundError:
    entry = None
except CacheBackendError as exc:
    logger.warning("Object store unavailable", error=str(exc))
```
"""

# Base exception
from tiercache.core.exceptions.base import ConfigurationError, TierCacheError

# Cache exceptions
from tiercache.core.exceptions.cache import (
    CacheBackendError,
    CacheError,
    CacheNotFoundError,
    CacheTimeoutError,
    ErrorKind,
)

__all__ = [
    # Base
    "TierCacheError",
    "ConfigurationError",
    # Cache
    "ErrorKind",
    "CacheError",
    "CacheNotFoundError",
    "CacheBackendError",
    "CacheTimeoutError",
]
