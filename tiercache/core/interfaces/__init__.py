"""
Core Interfaces Module

Value types and protocols shared by every cache tier.

Components:
-----------
- **cache.py**: CacheEntry, MetadataRecord, ObjectStore/MetadataStore protocols
  and their in-memory implementations

Usage:
------
```python
from tiercache.core.interfaces import MetadataStore, ObjectStore

def build(objects: ObjectStore | None, metadata: MetadataStore | None):
    # Works with any implementation
    ...
```
"""

from tiercache.core.interfaces.cache import (
    CacheEntry,
    InMemoryMetadataStore,
    InMemoryObjectStore,
    MetadataRecord,
    MetadataStore,
    ObjectStore,
    deserialize_value,
    now_ms,
    serialize_value,
)

__all__ = [
    # Value types
    "CacheEntry",
    "MetadataRecord",
    # Protocols
    "ObjectStore",
    "MetadataStore",
    # In-memory implementations
    "InMemoryObjectStore",
    "InMemoryMetadataStore",
    # Helpers
    "now_ms",
    "serialize_value",
    "deserialize_value",
]
