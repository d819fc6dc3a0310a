"""
Storage Module

Remote tier adapters: S3-compatible object store and Redis metadata store.
"""

from .metadata_store import (
    RedisMetadataStore,
    close_metadata_store,
    get_metadata_store,
)
from .object_store import (
    S3ObjectStore,
    build_object_key,
    get_object_store,
    reset_object_store,
)

__all__ = [
    "S3ObjectStore",
    "build_object_key",
    "get_object_store",
    "reset_object_store",
    "RedisMetadataStore",
    "get_metadata_store",
    "close_metadata_store",
]
