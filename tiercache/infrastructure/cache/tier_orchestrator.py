#!/usr/bin/env python3
"""
Tier Orchestrator - Three-Tier Lookup and Write Policy

Composes the local recency cache, the metadata store and the object store
into one cache with a get/set/delete surface.

Architecture:
    TierOrchestrator (this class)
        ├── RecencyCache   local tier (in-process LRU, always present)
        ├── MetadataStore  freshness oracle (optional, Redis)
        ├── ObjectStore    persistent tier (optional, S3-compatible)
        └── CacheObserver  logging + counters + Prometheus

Lookup Algorithm:
    1. Local entry younger than the TTL        -> return it, no remote calls
    2. Local entry stale, metadata configured:
         tombstone                             -> evict locally, miss
         revalidated_at <= local.last_modified -> return local entry
         absent / newer / failed               -> step 3
    3. Object store:
         not configured                        -> miss (stale is NOT served)
         not found                             -> miss
         empty value                           -> miss
         success                               -> refill local, record metadata
         failure                               -> stale local entry, else miss

Consistency is best-effort: tiers are written independently and nothing is
rolled back. No error escapes get/set/delete; task cancellation propagates.

Author: System Architect
Date: 2025-12-13
"""

import asyncio
import threading
import time
from collections.abc import Callable, Coroutine
from typing import Any

from tiercache.core.config.constants import (
    LOCAL_CACHE_TTL_MS,
    CacheKind,
    CacheTier,
    LookupOutcome,
)
from tiercache.core.config.settings import Settings, get_settings
from tiercache.core.exceptions import CacheNotFoundError, CacheTimeoutError
from tiercache.core.interfaces.cache import (
    CacheEntry,
    MetadataRecord,
    MetadataStore,
    ObjectStore,
    now_ms,
    serialize_value,
)
from tiercache.core.logging.logger import get_logger
from tiercache.infrastructure.cache.observer import CacheObserver
from tiercache.infrastructure.cache.recency_cache import RecencyCache
from tiercache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from tiercache.infrastructure.storage.metadata_store import close_metadata_store, get_metadata_store
from tiercache.infrastructure.storage.object_store import get_object_store, reset_object_store

logger = get_logger(__name__)


async def _bounded(coro: Coroutine[Any, Any, Any], deadline: float | None, tier: CacheTier, operation: str) -> Any:
    """
    Await a remote call within the caller's remaining budget.

    Args:
        coro: The remote call
        deadline: Absolute time.monotonic() deadline, or None for no budget
        tier: Tier being called (error context)
        operation: Operation name (error context)

    Raises:
        CacheTimeoutError: The deadline has passed or elapses during the call
    """
    if deadline is None:
        return await coro

    remaining = deadline - time.monotonic()
    if remaining <= 0:
        coro.close()
        raise CacheTimeoutError(
            f"Deadline expired before {tier.value} {operation}",
            details={"tier": tier.value, "operation": operation},
        )
    try:
        return await asyncio.wait_for(coro, timeout=remaining)
    except asyncio.TimeoutError as exc:
        raise CacheTimeoutError.from_exception(
            exc, f"Deadline expired during {tier.value} {operation}", tier=tier.value, operation=operation
        ) from exc


def payload_size(value: Any) -> int:
    """UTF-8 byte length of the serialized value (0 if it is not JSON-serializable)."""
    try:
        return len(serialize_value(value))
    except TypeError:
        return 0


class TierOrchestrator:
    """
    Three-tier cache.

    The remote tiers are injected and optional: with neither configured the
    orchestrator is a plain local LRU with a freshness window.

    Usage:
        orchestrator = TierOrchestrator(
            local=RecencyCache(max_size=1000),
            object_store=get_object_store(),
            metadata_store=get_metadata_store(),
        )
        await orchestrator.set("index", {"html": "..."})
        entry = await orchestrator.get("index")
    """

    def __init__(
        self,
        local: RecencyCache,
        object_store: ObjectStore | None = None,
        metadata_store: MetadataStore | None = None,
        local_ttl_ms: int = LOCAL_CACHE_TTL_MS,
        clock: Callable[[], int] = now_ms,
        observer: CacheObserver | None = None,
    ):
        """
        Args:
            local: Local recency cache
            object_store: Persistent tier, or None
            metadata_store: Freshness metadata tier, or None
            local_ttl_ms: Local freshness window in milliseconds
            clock: Epoch-ms clock (injectable for tests)
            observer: Event recorder (a counting-only observer if omitted)
        """
        self._local = local
        self._object_store = object_store
        self._metadata_store = metadata_store
        self._local_ttl_ms = local_ttl_ms
        self._clock = clock
        self._observer = observer or CacheObserver()

        logger.info(
            "Tiered cache initialized",
            tier_count=len(self.tiers),
            tiers=self.tiers,
            local_ttl_ms=local_ttl_ms,
            local_max_size=local.max_size,
        )

    @property
    def tiers(self) -> list[str]:
        """Configured tiers in lookup order."""
        tiers = [CacheTier.LOCAL.value]
        if self._metadata_store is not None:
            tiers.append(CacheTier.METADATA.value)
        if self._object_store is not None:
            tiers.append(CacheTier.OBJECT_STORE.value)
        return tiers

    @property
    def local(self) -> RecencyCache:
        return self._local

    @property
    def observer(self) -> CacheObserver:
        return self._observer

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(
        self,
        key: str,
        kind: CacheKind = CacheKind.CACHE,
        deadline: float | None = None,
    ) -> CacheEntry | None:
        """
        Look up a key through the tiers.

        Args:
            key: Cache key
            kind: Entry kind (selects the object store layout)
            deadline: Optional absolute time.monotonic() deadline. Once it
                passes, remote calls are skipped and the lookup degrades as
                on a backend failure (stale local entry or miss).

        Returns:
            The entry, or None on a miss. Never raises.
        """
        kind = CacheKind(kind)
        now = self._clock()
        local_entry = self._local.get(key)

        if local_entry is None:
            self._observer.record_lookup(CacheTier.LOCAL, LookupOutcome.MISS, key)
            return await self._fetch_persistent(key, kind, None, deadline)

        age_ms = local_entry.age_ms(now)
        if age_ms < self._local_ttl_ms:
            self._observer.record_lookup(CacheTier.LOCAL, LookupOutcome.HIT, key, age_ms=age_ms)
            return local_entry

        self._observer.record_lookup(CacheTier.LOCAL, LookupOutcome.STALE, key, age_ms=age_ms)

        if self._metadata_store is not None:
            record = await self._read_meta(key, deadline)

            if record is not None and record.deleted:
                self._local.delete(key)
                self._observer.record_lookup(CacheTier.METADATA, LookupOutcome.TOMBSTONE, key)
                return None

            if record is not None and record.revalidated_at <= local_entry.last_modified:
                self._observer.record_lookup(
                    CacheTier.METADATA, LookupOutcome.VALIDATED, key, revalidated_at=record.revalidated_at
                )
                return local_entry

            if record is not None:
                self._observer.record_lookup(
                    CacheTier.METADATA, LookupOutcome.STALE, key, revalidated_at=record.revalidated_at
                )
            else:
                self._observer.record_lookup(CacheTier.METADATA, LookupOutcome.MISS, key)

        return await self._fetch_persistent(key, kind, local_entry, deadline)

    async def set(self, key: str, value: Any, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Write a value through every tier.

        Order: object store, metadata, local. Remote failures are logged and
        ignored; the local tier is always updated.
        """
        kind = CacheKind(kind)
        now = self._clock()

        if self._object_store is not None:
            try:
                await self._object_store.set(key, value, kind)
            except Exception as exc:
                self._observer.record_error(CacheTier.OBJECT_STORE, "set", key, exc)

        if self._metadata_store is not None:
            await self._write_meta(key, MetadataRecord.for_write(now, payload_size(value)), None)

        self._local.set(key, CacheEntry(value=value, last_modified=now))
        logger.debug("Cache set", cache_key=key, kind=kind.value)

    async def delete(self, key: str, kind: CacheKind = CacheKind.CACHE) -> None:
        """
        Delete a key from every tier.

        Order: object store, metadata tombstone, local. The steps are
        independent; a failure in one does not skip the others.
        """
        kind = CacheKind(kind)

        if self._object_store is not None:
            try:
                await self._object_store.delete(key, kind)
            except Exception as exc:
                self._observer.record_error(CacheTier.OBJECT_STORE, "delete", key, exc)

        if self._metadata_store is not None:
            try:
                await self._metadata_store.delete_meta(key)
            except Exception as exc:
                self._observer.record_error(CacheTier.METADATA, "delete", key, exc)

        self._local.delete(key)
        logger.debug("Cache invalidated", cache_key=key, kind=kind.value)

    # -------------------------------------------------------------------------
    # Tier helpers
    # -------------------------------------------------------------------------

    async def _read_meta(self, key: str, deadline: float | None) -> MetadataRecord | None:
        try:
            return await _bounded(self._metadata_store.get_meta(key), deadline, CacheTier.METADATA, "get")
        except Exception as exc:
            self._observer.record_error(CacheTier.METADATA, "get", key, exc)
            return None

    async def _write_meta(self, key: str, record: MetadataRecord, deadline: float | None) -> None:
        try:
            await _bounded(self._metadata_store.set_meta(key, record), deadline, CacheTier.METADATA, "set")
        except Exception as exc:
            self._observer.record_error(CacheTier.METADATA, "set", key, exc)

    async def _fetch_persistent(
        self,
        key: str,
        kind: CacheKind,
        stale: CacheEntry | None,
        deadline: float | None,
    ) -> CacheEntry | None:
        if self._object_store is None:
            self._observer.record_lookup(CacheTier.OBJECT_STORE, LookupOutcome.DEGRADED, key, reason="not_configured")
            return None

        try:
            fetched = await _bounded(self._object_store.get(key, kind), deadline, CacheTier.OBJECT_STORE, "get")
        except CacheNotFoundError:
            self._observer.record_lookup(CacheTier.OBJECT_STORE, LookupOutcome.MISS, key, kind=kind.value)
            return None
        except Exception as exc:
            # CancelledError is a BaseException and propagates
            self._observer.record_error(CacheTier.OBJECT_STORE, "get", key, exc)
            if stale is not None:
                self._observer.record_lookup(
                    CacheTier.OBJECT_STORE, LookupOutcome.STALE, key, stale_last_modified=stale.last_modified
                )
                return stale
            self._observer.record_lookup(CacheTier.OBJECT_STORE, LookupOutcome.DEGRADED, key, reason="backend_error")
            return None

        if not fetched.value:
            # An empty stored value is a miss and is not cached
            self._observer.record_lookup(CacheTier.OBJECT_STORE, LookupOutcome.MISS, key, kind=kind.value, empty=True)
            return None

        self._local.set(key, CacheEntry(value=fetched.value, last_modified=self._clock()))

        if self._metadata_store is not None:
            record = MetadataRecord.for_write(fetched.last_modified, payload_size(fetched.value))
            await self._write_meta(key, record, deadline)

        self._observer.record_lookup(
            CacheTier.OBJECT_STORE, LookupOutcome.HIT, key, kind=kind.value, last_modified=fetched.last_modified
        )
        return fetched

    # -------------------------------------------------------------------------
    # Management
    # -------------------------------------------------------------------------

    def clear_local(self) -> int:
        """
        Empty the local tier.

        Returns:
            Number of entries removed
        """
        count = self._local.size()
        self._local.clear()
        logger.info("Local cache cleared", tier=CacheTier.LOCAL.value, entries=count)
        return count

    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with local tier usage, configured tiers and lookup counters
        """
        size = self._local.size()
        max_size = self._local.max_size
        return {
            "tiers": self.tiers,
            "local": {
                "size": size,
                "max_size": max_size,
                "utilization": round(size / max_size * 100, 2),
                "ttl_ms": self._local_ttl_ms,
            },
            "lookups": self._observer.get_stats(),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on every configured tier.

        An unconfigured tier is reported but does not degrade the status.

        Returns:
            Dict with overall status ("healthy" / "degraded") and per-tier health
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "tiers": {
                CacheTier.LOCAL.value: {
                    "status": "healthy",
                    "size": self._local.size(),
                    "max_size": self._local.max_size,
                },
            },
        }

        remote = (
            (CacheTier.METADATA, self._metadata_store),
            (CacheTier.OBJECT_STORE, self._object_store),
        )
        for tier, store in remote:
            if store is None:
                health["tiers"][tier.value] = {"status": "not_configured"}
                continue
            try:
                tier_health = await store.health_check()
            except Exception as e:
                tier_health = {"status": "error", "error": str(e)}
            health["tiers"][tier.value] = tier_health
            if tier_health.get("status") != "healthy":
                health["status"] = "degraded"

        return health


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_orchestrator: TierOrchestrator | None = None
_orchestrator_lock = threading.Lock()


def build_orchestrator(settings: Settings | None = None) -> TierOrchestrator:
    """
    Build an orchestrator from settings and the shared remote clients.
    """
    settings = settings or get_settings()
    return TierOrchestrator(
        local=RecencyCache(max_size=settings.cache.CACHE_LOCAL_MAX_SIZE),
        object_store=get_object_store(),
        metadata_store=get_metadata_store(),
        local_ttl_ms=settings.cache.CACHE_LOCAL_TTL_MS,
        observer=CacheObserver(metrics=get_metrics_collector()),
    )


def get_orchestrator() -> TierOrchestrator:
    """
    Get the global orchestrator instance (singleton).

    Returns:
        TierOrchestrator: Global orchestrator instance
    """
    global _orchestrator

    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator()

    return _orchestrator


async def init_orchestrator() -> TierOrchestrator:
    """
    Create the global orchestrator and report remote tier health.

    Unhealthy tiers are logged, not fatal: the cache degrades.

    Returns:
        TierOrchestrator: Initialized orchestrator
    """
    orchestrator = get_orchestrator()
    health = await orchestrator.health_check()
    if health["status"] != "healthy":
        logger.warning("Cache tiers degraded at startup", tiers=health["tiers"])
    return orchestrator


async def close_orchestrator() -> None:
    """Clear the local tier and release the remote clients."""
    global _orchestrator

    with _orchestrator_lock:
        orchestrator, _orchestrator = _orchestrator, None

    if orchestrator is not None:
        orchestrator.clear_local()
    await close_metadata_store()
    reset_object_store()
    logger.info("Tiered cache shutdown")
