"""
Monitoring Module

Prometheus metrics for cache tier lookups and backend failures.
"""

from .metrics_collector import MetricsCollector, get_metrics_collector

__all__ = ["MetricsCollector", "get_metrics_collector"]
