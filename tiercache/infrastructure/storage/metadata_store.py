"""
Metadata Store Adapter - Freshness Oracle

Redis hashes holding only freshness metadata (timestamps, tombstone flag,
size) for each cache key. A metadata read is far cheaper than an object
store read, so the orchestrator consults this tier to decide whether a
locally stale entry is still valid.

Storage Layout:
    key:    {table_name}:{build_id}/{cache_key}
    fields: lastModified   integer epoch ms
            revalidatedAt  integer epoch ms
            deleted        "1" | "0"
            size           integer bytes

Every operation is best-effort. This tier is an optimization, never a
source of truth: failures are logged and surface as None / no-op / [].

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import threading
from collections.abc import Callable, Iterable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from tiercache.core.config.constants import (
    DEFAULT_BUILD_ID,
    META_FIELD_DELETED,
    META_FIELD_LAST_MODIFIED,
    META_FIELD_REVALIDATED_AT,
    META_FIELD_SIZE,
    METADATA_DEFAULT_TABLE_NAME,
    METADATA_STORE_TIMEOUT,
    CacheTier,
)
from tiercache.core.config.settings import MetadataStoreSettings, get_settings
from tiercache.core.exceptions import ConfigurationError
from tiercache.core.interfaces.cache import MetadataRecord, now_ms
from tiercache.core.logging.logger import get_logger

logger = get_logger(__name__)

_TIER = CacheTier.METADATA.value

# Failures this tier absorbs (TimeoutError and ConnectionError are OSError subclasses)
_BACKEND_ERRORS = (RedisError, OSError, asyncio.TimeoutError)

_TRUE_VALUES = frozenset({"1", "true", "True"})


def encode_record(record: MetadataRecord, now: int) -> dict[str, str | int]:
    """
    Encode a record as Redis hash fields.

    Timestamps are truncated to whole milliseconds. A zero or missing
    timestamp is replaced by ``now``.
    """
    return {
        META_FIELD_LAST_MODIFIED: int(record.last_modified or now),
        META_FIELD_REVALIDATED_AT: int(record.revalidated_at or now),
        META_FIELD_DELETED: "1" if record.deleted else "0",
        META_FIELD_SIZE: int(record.size or 0),
    }


def decode_record(fields: dict[str, str], now: int) -> MetadataRecord:
    """
    Decode Redis hash fields into a record.

    Missing fields default to last_modified=now, revalidated_at=0,
    deleted=False, size=0.

    Raises:
        ValueError: If a numeric field is malformed
    """
    return MetadataRecord(
        last_modified=int(float(fields.get(META_FIELD_LAST_MODIFIED) or now)),
        revalidated_at=int(float(fields.get(META_FIELD_REVALIDATED_AT) or 0)),
        deleted=fields.get(META_FIELD_DELETED, "0") in _TRUE_VALUES,
        size=int(float(fields.get(META_FIELD_SIZE) or 0)),
    )


class RedisMetadataStore:
    """
    Metadata tier over Redis hashes.

    Usage:
        store = RedisMetadataStore(redis.Redis.from_url(url, decode_responses=True))
        await store.set_meta("index", MetadataRecord.for_write(now_ms(), size=512))
        record = await store.get_meta("index")
    """

    def __init__(
        self,
        client: redis.Redis,
        table_name: str = METADATA_DEFAULT_TABLE_NAME,
        build_id: str = DEFAULT_BUILD_ID,
        timeout: float = METADATA_STORE_TIMEOUT,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            client: redis.asyncio client created with decode_responses=True
            table_name: Namespace for every metadata key
            build_id: Deployment/build identifier scoping every key
            timeout: Upper bound for each call, in seconds
            clock: Epoch-ms clock (injectable for tests)
        """
        self._client = client
        self._table_name = table_name
        self._build_id = build_id
        self._timeout = timeout
        self._clock = clock

    def redis_key(self, key: str) -> str:
        return f"{self._table_name}:{self._build_id}/{key}"

    async def get_meta(self, key: str) -> MetadataRecord | None:
        """
        Fetch the record for a key.

        Returns:
            The record, or None if absent, malformed, or the tier is unavailable
        """
        redis_key = self.redis_key(key)
        try:
            fields = await asyncio.wait_for(self._client.hgetall(redis_key), timeout=self._timeout)
        except _BACKEND_ERRORS as exc:
            logger.error("Metadata read failed", tier=_TIER, cache_key=key, error=str(exc) or type(exc).__name__)
            return None

        if not fields:
            logger.debug("Metadata absent", tier=_TIER, cache_key=key)
            return None

        try:
            record = decode_record(fields, self._clock())
        except ValueError as exc:
            logger.error("Metadata record malformed", tier=_TIER, cache_key=key, error=str(exc))
            return None

        logger.debug(
            "Metadata hit",
            tier=_TIER,
            cache_key=key,
            revalidated_at=record.revalidated_at,
            deleted=record.deleted,
        )
        return record

    async def set_meta(self, key: str, record: MetadataRecord) -> None:
        """
        Upsert a record. Always overwrites; there is no concurrency check.
        """
        redis_key = self.redis_key(key)
        mapping = encode_record(record, self._clock())
        try:
            await asyncio.wait_for(self._client.hset(redis_key, mapping=mapping), timeout=self._timeout)
        except _BACKEND_ERRORS as exc:
            logger.error("Metadata write failed", tier=_TIER, cache_key=key, error=str(exc) or type(exc).__name__)
            return
        logger.debug("Metadata updated", tier=_TIER, cache_key=key, deleted=record.deleted)

    async def delete_meta(self, key: str) -> None:
        """
        Tombstone a key: deleted=True with revalidated_at=now.

        The hash is kept so every instance sees the deletion.
        """
        await self.set_meta(key, MetadataRecord.tombstone(self._clock()))

    async def batch_get_meta(self, keys: Iterable[str]) -> list[tuple[str, MetadataRecord]]:
        """
        Fetch records for many keys in one pipelined round trip.

        Returns:
            (key, record) pairs for keys that have a record, in input order.
            Empty list when the tier is unavailable.
        """
        keys = list(keys)
        if not keys:
            return []

        try:
            pipe = self._client.pipeline(transaction=False)
            for key in keys:
                pipe.hgetall(self.redis_key(key))
            results = await asyncio.wait_for(pipe.execute(), timeout=self._timeout)
        except _BACKEND_ERRORS as exc:
            logger.error("Metadata batch read failed", tier=_TIER, count=len(keys), error=str(exc) or type(exc).__name__)
            return []

        now = self._clock()
        records: list[tuple[str, MetadataRecord]] = []
        for key, fields in zip(keys, results):
            if not fields or isinstance(fields, Exception):
                continue
            try:
                records.append((key, decode_record(fields, now)))
            except ValueError as exc:
                logger.warning("Skipping malformed metadata record", tier=_TIER, cache_key=key, error=str(exc))

        logger.debug("Metadata batch read", tier=_TIER, requested=len(keys), found=len(records))
        return records

    async def health_check(self) -> dict[str, Any]:
        """
        Check Redis reachability with PING.

        Returns:
            Dict with status ("healthy" / "unhealthy") and error if any
        """
        try:
            await asyncio.wait_for(self._client.ping(), timeout=self._timeout)
            return {"status": "healthy", "table": self._table_name}
        except _BACKEND_ERRORS as exc:
            return {"status": "unhealthy", "table": self._table_name, "error": str(exc) or type(exc).__name__}

    async def close(self) -> None:
        await self._client.aclose()


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_metadata_store: RedisMetadataStore | None = None
_metadata_store_lock = threading.Lock()


def create_redis_client(settings: MetadataStoreSettings) -> redis.Redis:
    """
    Build a redis.asyncio client with bounded socket timeouts.

    Raises:
        ConfigurationError: The endpoint is not a redis://, rediss:// or unix:// URL
    """
    try:
        return redis.Redis.from_url(
            settings.METADATA_STORE_ENDPOINT,
            db=settings.METADATA_STORE_INSTANCE,
            username=settings.METADATA_STORE_USERNAME,
            password=settings.METADATA_STORE_PASSWORD,
            socket_timeout=settings.METADATA_STORE_TIMEOUT,
            socket_connect_timeout=settings.METADATA_STORE_TIMEOUT,
            health_check_interval=30,
            decode_responses=True,
        )
    except ValueError as e:
        raise ConfigurationError.from_exception(e, "Invalid metadata store endpoint") from e


def get_metadata_store() -> RedisMetadataStore | None:
    """
    Get the process-wide metadata store (lazy, thread-safe singleton).

    Returns:
        The shared RedisMetadataStore, or None when the metadata tier is
        not configured.
    """
    global _metadata_store

    if _metadata_store is not None:
        return _metadata_store

    settings = get_settings().metadata
    if not settings.is_configured:
        return None

    with _metadata_store_lock:
        if _metadata_store is None:
            _metadata_store = RedisMetadataStore(
                client=create_redis_client(settings),
                table_name=settings.METADATA_STORE_TABLE_NAME,
                build_id=settings.BUILD_ID,
                timeout=settings.METADATA_STORE_TIMEOUT,
            )
            logger.info(
                "Metadata store enabled",
                tier=_TIER,
                instance=settings.METADATA_STORE_INSTANCE,
                table=settings.METADATA_STORE_TABLE_NAME,
            )
    return _metadata_store


async def close_metadata_store() -> None:
    """Close the shared client and drop the instance."""
    global _metadata_store
    with _metadata_store_lock:
        store, _metadata_store = _metadata_store, None
    if store is not None:
        await store.close()
