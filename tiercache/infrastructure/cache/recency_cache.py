#!/usr/bin/env python3
"""
Recency Cache - Bounded In-Process LRU

The local tier of the cache. Holds CacheEntry objects keyed by cache key and
evicts the least recently touched entry when a new key would exceed capacity.

Implementation Details:
- Hash map from key to list node for O(1) lookup
- Doubly linked list with a sentinel node for O(1) reorder and eviction
  (head.next is least recent, head.prev is most recent)
- One threading.Lock around every operation, including reads, because
  get() repositions the key
- No TTL logic: staleness is computed by the orchestrator from
  CacheEntry.last_modified

The lock is a threading.Lock rather than an asyncio.Lock: no operation
awaits while holding it, so it serializes coroutines and worker threads alike.

Author: System Architect
Date: 2025-12-13
"""

import threading
from collections.abc import Iterator

from tiercache.core.config.constants import LOCAL_CACHE_MAX_SIZE
from tiercache.core.interfaces.cache import CacheEntry


class _Node:
    __slots__ = ("key", "entry", "prev", "next")

    def __init__(self, key: str | None = None, entry: CacheEntry | None = None):
        self.key = key
        self.entry = entry
        self.prev: "_Node" = self
        self.next: "_Node" = self


class RecencyCache:
    """
    In-memory LRU cache storage.

    This is a per-process cache, not shared across workers. The orchestrator
    owns exactly one instance.

    Usage:
        cache = RecencyCache(max_size=2)
        cache.set("a", CacheEntry(value=1, last_modified=now_ms()))
        entry = cache.get("a")  # "a" is now most recent
    """

    def __init__(self, max_size: int = LOCAL_CACHE_MAX_SIZE):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries (>= 1, fixed for the lifetime)

        Raises:
            ValueError: If max_size < 1
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self._max_size = max_size
        self._map: dict[str, _Node] = {}
        self._head = _Node()  # sentinel
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Linked list primitives (caller holds the lock)
    # -------------------------------------------------------------------------

    def _unlink(self, node: _Node) -> None:
        node.prev.next = node.next
        node.next.prev = node.prev
        node.prev = node.next = node

    def _append(self, node: _Node) -> None:
        # Insert just before the sentinel: most-recent position
        tail = self._head.prev
        tail.next = node
        node.prev = tail
        node.next = self._head
        self._head.prev = node

    def _evict_oldest(self) -> None:
        oldest = self._head.next
        if oldest is self._head:
            return
        self._unlink(oldest)
        del self._map[oldest.key]

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        """
        Get an entry and mark it most recently used.

        Returns:
            The cached entry, or None if absent (no side effect on a miss)
        """
        with self._lock:
            node = self._map.get(key)
            if node is None:
                return None
            self._unlink(node)
            self._append(node)
            return node.entry

    def set(self, key: str, entry: CacheEntry) -> None:
        """
        Insert or replace an entry at the most-recent position.

        Inserting a new key into a full cache evicts the least recently
        used entry first. Replacing an existing key never evicts.
        """
        with self._lock:
            node = self._map.get(key)
            if node is not None:
                self._unlink(node)
                node.entry = entry
                self._append(node)
                return

            if len(self._map) >= self._max_size:
                self._evict_oldest()

            node = _Node(key, entry)
            self._map[key] = node
            self._append(node)

    def delete(self, key: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if deleted, False if not found
        """
        with self._lock:
            node = self._map.pop(key, None)
            if node is None:
                return False
            self._unlink(node)
            return True

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._map.clear()
            self._head.prev = self._head.next = self._head

    def size(self) -> int:
        """Current number of entries."""
        with self._lock:
            return len(self._map)

    @property
    def max_size(self) -> int:
        """Maximum capacity."""
        return self._max_size

    def keys(self) -> list[str]:
        """
        Snapshot of keys in LRU order (least recent first, most recent last).
        """
        with self._lock:
            return list(self._iter_keys())

    def _iter_keys(self) -> Iterator[str]:
        node = self._head.next
        while node is not self._head:
            yield node.key
            node = node.next

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        # Membership does not count as a touch
        with self._lock:
            return key in self._map
