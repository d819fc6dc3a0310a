"""
Health Check Routes
===================

LIVENESS vs TIER HEALTH:
------------------------
- GET /health        "Is the process up?" Never touches a backend.
- GET /health/tiers  "Are the configured tiers reachable?" Pings Redis and
                     HEADs the bucket. Returns 503 when any configured tier
                     is unhealthy so load balancers can react; unconfigured
                     tiers are reported but do not count as unhealthy.

The cache keeps serving while degraded (stale-or-miss), so a 503 here is an
operational signal, not an outage.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tiercache.application.api.dependencies import OrchestratorDep, SettingsDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    timestamp: str
    version: str


class TierHealthResponse(BaseModel):
    """Per-tier health response."""

    status: str  # "healthy" or "degraded"
    timestamp: str
    tiers: dict


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """
    Liveness check for load balancers.

    Returns:
        HealthResponse: Always "healthy" while the process serves requests
    """
    return HealthResponse(status="healthy", timestamp=_timestamp(), version=settings.app.APP_VERSION)


@router.get("/tiers", response_model=TierHealthResponse)
async def tier_health(orchestrator: OrchestratorDep):
    """
    Health of every configured cache tier.

    HTTP Status Codes:
        200: Every configured tier is healthy
        503: At least one configured tier is unhealthy
    """
    health = await orchestrator.health_check()
    body = TierHealthResponse(status=health["status"], timestamp=_timestamp(), tiers=health["tiers"])

    if health["status"] != "healthy":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump())
    return body
