"""
FastAPI Dependency Injection
============================

Reusable dependencies giving route handlers access to the application
singletons (orchestrator, cache handler, settings, metrics).

The orchestrator and cache handler are created in the lifespan handler and
stored on ``app.state``. Where the lifespan did not run (for example a
TestClient used without a ``with`` block) the global instances are used
and cached on ``app.state`` for later requests.

Example:
    @router.get("/stats")
    async def stats(orchestrator: OrchestratorDep):
        return orchestrator.stats()
"""

from typing import Annotated

from fastapi import Depends, Request

from tiercache.application.services.cache_handler import CacheHandler
from tiercache.core.config.settings import Settings, get_settings
from tiercache.infrastructure.cache import tier_orchestrator
from tiercache.infrastructure.cache.tier_orchestrator import TierOrchestrator
from tiercache.infrastructure.monitoring.metrics_collector import MetricsCollector, get_metrics_collector

# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_orchestrator(request: Request) -> TierOrchestrator:
    """
    Retrieve the TierOrchestrator from application state.

    Args:
        request: FastAPI Request object (injected by FastAPI)

    Returns:
        TierOrchestrator: The application's orchestrator
    """
    if not hasattr(request.app.state, "orchestrator"):
        request.app.state.orchestrator = tier_orchestrator.get_orchestrator()
    return request.app.state.orchestrator


def get_cache_handler(request: Request) -> CacheHandler:
    """
    Retrieve the CacheHandler from application state.

    Args:
        request: FastAPI Request object (injected by FastAPI)

    Returns:
        CacheHandler: Handler bound to the application's orchestrator
    """
    if not hasattr(request.app.state, "cache_handler"):
        request.app.state.cache_handler = CacheHandler(get_orchestrator(request))
    return request.app.state.cache_handler


def get_metrics() -> MetricsCollector:
    """Retrieve the global MetricsCollector."""
    return get_metrics_collector()


# ============================================================================
# TYPE ALIASES FOR DEPENDENCY INJECTION
# ============================================================================

OrchestratorDep = Annotated[TierOrchestrator, Depends(get_orchestrator)]

CacheHandlerDep = Annotated[CacheHandler, Depends(get_cache_handler)]

SettingsDep = Annotated[Settings, Depends(get_settings)]

MetricsDep = Annotated[MetricsCollector, Depends(get_metrics)]
