"""
Cache Module

Local recency cache and the tier orchestrator composing it with the remote
metadata and object stores.
"""

from .observer import CacheObserver
from .recency_cache import RecencyCache
from .tier_orchestrator import (
    TierOrchestrator,
    build_orchestrator,
    close_orchestrator,
    get_orchestrator,
    init_orchestrator,
)

__all__ = [
    "RecencyCache",
    "CacheObserver",
    "TierOrchestrator",
    "build_orchestrator",
    "get_orchestrator",
    "init_orchestrator",
    "close_orchestrator",
]
