"""
Cache Observer - Tier Event Accounting

Responsibility: all side effects of a lookup (logging, counters, Prometheus).
The orchestrator reports what happened; the observer decides how it is
recorded, so the tier logic stays free of logging noise.

Author: System Architect
Date: 2025-12-13
"""

from collections import Counter
from typing import Any

from tiercache.core.config.constants import CacheTier, LookupOutcome
from tiercache.core.logging.logger import get_logger, log_tier

logger = get_logger(__name__)


class CacheObserver:
    """
    Tracks tier lookup outcomes and backend failures.

    Metrics Tracked:
    - Lookups per (tier, outcome)
    - Backend failures per (tier, operation)
    - Overall and local hit rates

    Usage:
        observer = CacheObserver(metrics=get_metrics_collector())
        observer.record_lookup(CacheTier.LOCAL, LookupOutcome.HIT, "index", age_ms=12)
    """

    def __init__(self, metrics=None, logger_instance=None):
        """
        Args:
            metrics: Optional MetricsCollector receiving Prometheus updates
            logger_instance: Logger instance
        """
        self._metrics = metrics
        self._logger = logger_instance or logger
        self._lookups: Counter[tuple[str, str]] = Counter()
        self._errors: Counter[tuple[str, str]] = Counter()

    def record_lookup(
        self,
        tier: CacheTier,
        outcome: LookupOutcome,
        key: str,
        **fields: Any,
    ) -> None:
        """
        Record one tier lookup outcome.

        Args:
            tier: Tier that produced the outcome
            outcome: What the lookup found
            key: Cache key
            **fields: Extra log fields (age_ms, kind, ...)
        """
        tier = CacheTier(tier)
        outcome = LookupOutcome(outcome)
        self._lookups[(tier.value, outcome.value)] += 1
        if self._metrics is not None:
            self._metrics.record_lookup(tier.value, outcome.value)

        log_tier(
            self._logger,
            tier,
            outcome,
            f"{tier.value} {outcome.value}",
            cache_key=key,
            **fields,
        )

    def record_error(
        self,
        tier: CacheTier,
        operation: str,
        key: str,
        error: BaseException,
    ) -> None:
        """Record a recoverable backend failure (logged at warning)."""
        tier = CacheTier(tier)
        self._errors[(tier.value, operation)] += 1
        if self._metrics is not None:
            self._metrics.record_backend_error(tier.value, operation)

        log_tier(
            self._logger,
            tier,
            LookupOutcome.ERROR,
            f"{tier.value} {operation} failed",
            level="warning",
            cache_key=key,
            operation=operation,
            error=str(error) or type(error).__name__,
            error_type=type(error).__name__,
        )

    def lookups(self, tier: CacheTier, outcome: LookupOutcome) -> int:
        return self._lookups[(CacheTier(tier).value, LookupOutcome(outcome).value)]

    def errors(self, tier: CacheTier, operation: str) -> int:
        return self._errors[(CacheTier(tier).value, operation)]

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        A request counts as a hit when it was answered from the local tier
        (fresh or validated by metadata) or from the object store.

        Returns:
            Dict with per-tier counters and hit rates
        """
        local_hits = self.lookups(CacheTier.LOCAL, LookupOutcome.HIT)
        validated = self.lookups(CacheTier.METADATA, LookupOutcome.VALIDATED)
        remote_hits = self.lookups(CacheTier.OBJECT_STORE, LookupOutcome.HIT)
        stale_served = self.lookups(CacheTier.OBJECT_STORE, LookupOutcome.STALE)
        misses = (
            self.lookups(CacheTier.OBJECT_STORE, LookupOutcome.MISS)
            + self.lookups(CacheTier.OBJECT_STORE, LookupOutcome.DEGRADED)
            + self.lookups(CacheTier.METADATA, LookupOutcome.TOMBSTONE)
        )

        hits = local_hits + validated + remote_hits + stale_served
        total = hits + misses

        return {
            "local_hits": local_hits,
            "validated_hits": validated,
            "object_store_hits": remote_hits,
            "stale_served": stale_served,
            "misses": misses,
            "total_requests": total,
            "hit_rate": round(hits / total, 3) if total > 0 else 0.0,
            "local_hit_rate": round((local_hits + validated) / total, 3) if total > 0 else 0.0,
            "backend_errors": {f"{tier}.{op}": count for (tier, op), count in sorted(self._errors.items())},
        }
