"""
Cache Tier Protocols

This module defines the value types that flow between tiers and the abstract
protocols for the two remote tiers, enabling dependency injection and
testability.

Architectural Decision: Protocol-based abstraction
- The orchestrator depends on ObjectStore/MetadataStore, not on boto3/redis
- Tests inject in-memory implementations (defined below) or AsyncMocks
- Type-safe interface with runtime checking

Author: System Architect
Date: 2025-12-08
"""

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import orjson

from tiercache.core.config.constants import CacheKind
from tiercache.core.exceptions import CacheNotFoundError


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def serialize_value(value: Any) -> bytes:
    """Encode a cache value as UTF-8 JSON."""
    return orjson.dumps(value)


def deserialize_value(raw: bytes | str) -> Any:
    """Decode a UTF-8 JSON cache value."""
    return orjson.loads(raw)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    A cached value and the epoch-ms timestamp it was last written.

    Entries are replaced wholesale, never updated in place.
    """

    value: Any
    last_modified: int

    def age_ms(self, now: int) -> int:
        return now - self.last_modified

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the cache-handler boundary."""
        return {"value": self.value, "lastModified": self.last_modified}


@dataclass(frozen=True, slots=True)
class MetadataRecord:
    """
    Freshness metadata for one key, stored only in the metadata tier.

    Attributes:
        last_modified: Last value-write timestamp (epoch ms)
        revalidated_at: Last time the value was confirmed fresh (epoch ms)
        deleted: Tombstone flag; overrides every older cached copy
        size: Serialized value size in bytes
    """

    last_modified: int
    revalidated_at: int
    deleted: bool = False
    size: int = 0

    @classmethod
    def for_write(cls, timestamp: int, size: int) -> "MetadataRecord":
        """Record for a fresh value write: last_modified == revalidated_at."""
        return cls(last_modified=timestamp, revalidated_at=timestamp, deleted=False, size=size)

    @classmethod
    def tombstone(cls, timestamp: int) -> "MetadataRecord":
        return cls(last_modified=timestamp, revalidated_at=timestamp, deleted=True, size=0)


@runtime_checkable
class ObjectStore(Protocol):
    """
    Protocol for the persistent tier.

    Implementations:
    - S3ObjectStore: boto3-backed S3-compatible store (OSS, MinIO, AWS)
    - InMemoryObjectStore: tests and local development

    Failure contract:
    - get() raises CacheNotFoundError (ignorable) for an absent object
    - every method raises CacheBackendError (recoverable) for anything else
    - delete() of an absent object succeeds silently
    """

    async def get(self, key: str, kind: CacheKind = CacheKind.CACHE) -> CacheEntry:
        """
        Fetch a value.

        Raises:
            CacheNotFoundError: The object does not exist
            CacheBackendError: Any other failure, including timeouts
        """
        ...

    async def set(self, key: str, value: Any, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Store a value.

        Raises:
            CacheBackendError: If the write fails
        """
        ...

    async def delete(self, key: str, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Delete a value. Deleting an absent key is not an error.

        Raises:
            CacheBackendError: If the delete fails
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Report backend health without raising."""
        ...


@runtime_checkable
class MetadataStore(Protocol):
    """
    Protocol for the metadata tier.

    Every method is best-effort: failures are logged inside the
    implementation and surface as None / no-op / empty list.
    """

    async def get_meta(self, key: str) -> MetadataRecord | None:
        """Fetch the record for a key, or None if absent or unavailable."""
        ...

    async def set_meta(self, key: str, record: MetadataRecord) -> None:
        """Upsert a record, overwriting any existing one."""
        ...

    async def delete_meta(self, key: str) -> None:
        """Write a tombstone for a key."""
        ...

    async def batch_get_meta(self, keys: Iterable[str]) -> list[tuple[str, MetadataRecord]]:
        """Fetch records for many keys; absent keys are omitted."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Report backend health without raising."""
        ...


class InMemoryObjectStore:
    """
    In-memory ObjectStore for testing and development.

    Values are stored serialized, so non-JSON values fail on set exactly
    like they would against a real bucket.
    """

    def __init__(self, clock=now_ms):
        self._objects: dict[tuple[str, str], tuple[bytes, int]] = {}
        self._clock = clock

    async def get(self, key: str, kind: CacheKind = CacheKind.CACHE) -> CacheEntry:
        stored = self._objects.get((CacheKind(kind).value, key))
        if stored is None:
            raise CacheNotFoundError(f"Object not found: {key}", details={"tier": "object_store"})
        raw, last_modified = stored
        return CacheEntry(value=deserialize_value(raw), last_modified=last_modified)

    async def set(self, key: str, value: Any, kind: CacheKind = CacheKind.CACHE) -> None:
        self._objects[(CacheKind(kind).value, key)] = (serialize_value(value), self._clock())

    async def delete(self, key: str, kind: CacheKind = CacheKind.CACHE) -> None:
        self._objects.pop((CacheKind(kind).value, key), None)

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy", "type": "in_memory", "objects": len(self._objects)}

    def __len__(self) -> int:
        return len(self._objects)


@dataclass
class InMemoryMetadataStore:
    """In-memory MetadataStore for testing and development."""

    records: dict[str, MetadataRecord] = field(default_factory=dict)
    clock: Any = now_ms

    async def get_meta(self, key: str) -> MetadataRecord | None:
        return self.records.get(key)

    async def set_meta(self, key: str, record: MetadataRecord) -> None:
        self.records[key] = record

    async def delete_meta(self, key: str) -> None:
        self.records[key] = MetadataRecord.tombstone(self.clock())

    async def batch_get_meta(self, keys: Iterable[str]) -> list[tuple[str, MetadataRecord]]:
        return [(key, self.records[key]) for key in keys if key in self.records]

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy", "type": "in_memory", "records": len(self.records)}
