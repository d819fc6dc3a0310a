"""
Admin Routes
============

Operational endpoints:
- GET  /admin/cache/stats        local tier usage and lookup counters
- POST /admin/cache/clear-local  empty this process's local tier
- GET  /admin/metrics            Prometheus exposition

Clearing the local tier only affects this process; the metadata and object
store tiers are untouched, so the next lookups refill from them.
"""

from fastapi import APIRouter, Response
from pydantic import BaseModel

from tiercache.application.api.dependencies import MetricsDep, OrchestratorDep

router = APIRouter(prefix="/admin", tags=["Admin"])


class ClearLocalResponse(BaseModel):
    cleared: int


@router.get("/cache/stats")
async def cache_stats(orchestrator: OrchestratorDep):
    """Cache statistics for dashboards and debugging."""
    return orchestrator.stats()


@router.post("/cache/clear-local", response_model=ClearLocalResponse)
async def clear_local_cache(orchestrator: OrchestratorDep):
    """Empty the local tier of this process."""
    return ClearLocalResponse(cleared=orchestrator.clear_local())


@router.get("/metrics")
async def get_prometheus_metrics(metrics: MetricsDep):
    """
    Prometheus metrics in text exposition format.

    Returns:
        Response: Plain-text metrics for Prometheus scraping
    """
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())
