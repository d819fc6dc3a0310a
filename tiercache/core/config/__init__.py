"""
Configuration Module

Centralized, type-safe configuration for the tiered cache service.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Enums (CacheKind, CacheTier, LookupOutcome) and defaults

Environment Variables:
---------------------
```bash
# Persistent tier (all four required to enable it)
OBJECT_STORE_REGION=oss-cn-hangzhou
OBJECT_STORE_ACCESS_KEY_ID=...
OBJECT_STORE_ACCESS_KEY_SECRET=...
OBJECT_STORE_BUCKET=my-cache
OBJECT_STORE_ENDPOINT=https://oss-cn-hangzhou.aliyuncs.com

# Metadata tier
METADATA_STORE_ENDPOINT=redis://localhost:6379
METADATA_STORE_TABLE_NAME=cache_metadata

# Local tier
CACHE_LOCAL_TTL_MS=60000
CACHE_LOCAL_MAX_SIZE=1000
CACHE_DEBUG=false
```

Testing:
-------
```python
import os
from tiercache.core.config import reload_settings

os.environ["CACHE_LOCAL_MAX_SIZE"] = "10"
settings = reload_settings()
assert settings.cache.CACHE_LOCAL_MAX_SIZE == 10
```
"""

from tiercache.core.config.constants import (
    DEFAULT_BUILD_ID,
    HEADER_REQUEST_ID,
    LOCAL_CACHE_MAX_SIZE,
    LOCAL_CACHE_TTL_MS,
    OBJECT_KEY_DEFAULT_PREFIX,
    CacheKind,
    CacheTier,
    LookupOutcome,
)
from tiercache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "CacheKind",
    "CacheTier",
    "LookupOutcome",
    # Defaults
    "DEFAULT_BUILD_ID",
    "LOCAL_CACHE_MAX_SIZE",
    "LOCAL_CACHE_TTL_MS",
    "OBJECT_KEY_DEFAULT_PREFIX",
    # HTTP headers
    "HEADER_REQUEST_ID",
]
