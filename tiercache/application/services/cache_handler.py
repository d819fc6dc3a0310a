"""
Cache Handler Service
=====================

WHAT IS THIS SERVICE?
---------------------
CacheHandler is the boundary a host web framework talks to. It speaks the
host's vocabulary (options / context mappings, camelCase keys) and
translates it into TierOrchestrator calls:

    host framework ──> CacheHandler ──> TierOrchestrator ──> tiers

KIND DETECTION:
---------------
Fetch-cache entries live in their own object store layout. A call is a
fetch-cache call when:
- get(): options is True, or a mapping with kindHint == "fetch",
  fetchCache is True, or kind == "FETCH"
- set(): context.fetchCache is True, or data.kind == "FETCH"
Everything else is a regular "cache" entry.

FAILURE POLICY:
---------------
Nothing raises out of this class. A failure is a miss on read and a no-op
on write; the host framework renders fresh content either way.
"""

from collections.abc import Mapping
from typing import Any

from tiercache.core.config.constants import CacheKind
from tiercache.core.logging.logger import get_logger
from tiercache.infrastructure.cache.tier_orchestrator import TierOrchestrator, get_orchestrator

logger = get_logger(__name__)


def is_fetch_cache(options: Any) -> bool:
    """
    Decide whether a get() call targets the fetch cache.

    Examples:
        >>> is_fetch_cache(True)
        True
        >>> is_fetch_cache({"kindHint": "fetch"})
        True
        >>> is_fetch_cache({"kind": "PAGE"})
        False
    """
    if isinstance(options, bool):
        return options
    if isinstance(options, Mapping):
        return (
            options.get("kindHint") == "fetch"
            or options.get("fetchCache") is True
            or options.get("kind") == "FETCH"
        )
    return False


def _context_value(context: Any, name: str) -> Any:
    """Read a write-context field from a mapping or an attribute-style object."""
    if context is None:
        return None
    if isinstance(context, Mapping):
        return context.get(name)
    return getattr(context, name, None)


class CacheHandler:
    """
    Host-framework cache handler backed by the tiered cache.

    Usage:
        handler = CacheHandler(get_orchestrator())
        await handler.set("/blog", {"kind": "PAGE", "html": "..."}, {"revalidate": 60})
        cached = await handler.get("/blog", {"kindHint": "page"})
        # {"value": {"revalidate": 60, "kind": "PAGE", "html": "..."}, "lastModified": ...}
    """

    def __init__(self, orchestrator: TierOrchestrator | None = None):
        """
        Args:
            orchestrator: Tiered cache (the global one if omitted)
        """
        self._orchestrator = orchestrator or get_orchestrator()

    async def get(self, key: str, options: Any = None) -> dict[str, Any] | None:
        """
        Read a cache entry.

        Args:
            key: Cache key
            options: Kind selector (bool or mapping, see is_fetch_cache)

        Returns:
            {"value": ..., "lastModified": epoch_ms}, or None on a miss.
            A hit whose value is falsy is reported as a miss.
        """
        kind = CacheKind.FETCH if is_fetch_cache(options) else CacheKind.CACHE
        try:
            entry = await self._orchestrator.get(key, kind)
        except Exception as exc:
            logger.error("Cache handler get failed", cache_key=key, kind=kind.value, error=str(exc))
            return None

        if entry is None or not entry.value:
            return None
        return entry.to_dict()

    async def set(self, key: str, data: Mapping[str, Any] | None, context: Any = None) -> None:
        """
        Write or delete a cache entry.

        The stored value is ``{"revalidate": context["revalidate"], **data}``;
        the payload is otherwise opaque.

        Args:
            key: Cache key
            data: Payload mapping, or None to delete the key
            context: Write context (revalidate, fetchCache), a mapping or any
                object exposing those attributes
        """
        try:
            fetch = _context_value(context, "fetchCache") is True

            if data is None:
                kind = CacheKind.FETCH if fetch else CacheKind.CACHE
                await self._orchestrator.delete(key, kind)
                return

            if not isinstance(data, Mapping):
                logger.warning("Ignoring non-mapping cache data", cache_key=key, data_type=type(data).__name__)
                return

            kind = CacheKind.FETCH if fetch or data.get("kind") == "FETCH" else CacheKind.CACHE
            envelope = {"revalidate": _context_value(context, "revalidate"), **data}
            await self._orchestrator.set(key, envelope, kind)
        except Exception as exc:
            logger.error("Cache handler set failed", cache_key=key, error=str(exc))

    async def revalidate_tag(self, tag: str | list[str]) -> None:
        """
        Tag invalidation hook.

        There is no tag index, so this only records the request; entries
        expire through the normal freshness rules.
        """
        tags = [tag] if isinstance(tag, str) else list(tag)
        logger.info("Tag revalidation requested, no tag index configured", tags=tags)

    def reset_request_cache(self) -> None:
        """Per-request cache hook (nothing is cached per request)."""
        logger.debug("Request cache reset")
