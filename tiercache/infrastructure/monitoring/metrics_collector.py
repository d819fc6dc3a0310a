#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Prometheus counters for the tiered cache:
- Lookups per tier and outcome (hit, miss, stale, validated, ...)
- Backend failures per tier and operation
- Unhandled HTTP errors
- Application info

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Exposed by GET {base_path}/admin/metrics

Author: Senior Solution Architect
Date: 2025-12-05
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Info,
    generate_latest,
)

from tiercache.core.config.settings import get_settings
from tiercache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

LOOKUPS = Counter(
    'tiercache_lookups_total',
    'Cache lookups by tier and outcome',
    ['tier', 'outcome']
)

BACKEND_ERRORS = Counter(
    'tiercache_backend_errors_total',
    'Recoverable backend failures by tier and operation',
    ['tier', 'operation']
)

HTTP_ERRORS = Counter(
    'tiercache_http_errors_total',
    'Unhandled errors in HTTP requests by type',
    ['error_type', 'stage']
)

APP_INFO = Info(
    'tiercache_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    Usage:
        metrics = MetricsCollector()
        metrics.record_lookup("local", "hit")
        metrics.record_backend_error("object_store", "get")
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME,
            'build_id': self.settings.BUILD_ID,
        })

        logger.debug("Metrics collector initialized")

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_lookup(self, tier: str, outcome: str) -> None:
        """Record a tier lookup outcome."""
        LOOKUPS.labels(
            tier=getattr(tier, "value", tier),
            outcome=getattr(outcome, "value", outcome),
        ).inc()

    def record_backend_error(self, tier: str, operation: str) -> None:
        """Record a recoverable backend failure."""
        BACKEND_ERRORS.labels(tier=getattr(tier, "value", tier), operation=operation).inc()

    # =========================================================================
    # Error Metrics
    # =========================================================================

    def record_error(self, error_type: str, stage: str) -> None:
        """Record an unhandled request error."""
        HTTP_ERRORS.labels(error_type=error_type, stage=stage).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
