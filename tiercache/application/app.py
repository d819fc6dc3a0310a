#!/usr/bin/env python3
"""
FastAPI Application Entry Point

HTTP service exposing the tiered cache: the cache handler, tier health,
statistics and Prometheus metrics.

Author: Senior Solution Architect
Date: 2025-12-05
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tiercache.application.api.middleware.error_handler import add_error_handling_middleware
from tiercache.application.api.routes.admin import router as admin_router
from tiercache.application.api.routes.cache import router as cache_router
from tiercache.application.api.routes.health import router as health_router
from tiercache.application.services.cache_handler import CacheHandler
from tiercache.core.config.constants import HEADER_REQUEST_ID
from tiercache.core.config.settings import get_settings
from tiercache.core.exceptions import TierCacheError
from tiercache.core.logging.logger import clear_request_id, get_logger, set_request_id, setup_logging
from tiercache.infrastructure.cache.tier_orchestrator import close_orchestrator, init_orchestrator

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.effective_level, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting tiered cache service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        build_id=settings.BUILD_ID,
    )

    try:
        orchestrator = await init_orchestrator()

        # Store in app state for dependencies.py
        app.state.orchestrator = orchestrator
        app.state.cache_handler = CacheHandler(orchestrator)

        logger.info("Application startup complete", tiers=orchestrator.tiers)

        yield

    finally:
        logger.info("Shutting down application")

        await close_orchestrator()

        logger.info("Application shutdown complete")


# ============================================================================
# Middleware
# ============================================================================


async def request_id_middleware(request: Request, call_next):
    """
    Bind a request id to the log context and echo it in the response.
    """
    request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())

    set_request_id(request_id)

    try:
        response = await call_next(request)
        response.headers[HEADER_REQUEST_ID] = request_id
        return response

    finally:
        clear_request_id()


# ============================================================================
# Exception Handlers
# ============================================================================


async def tiercache_exception_handler(request: Request, exc: TierCacheError):
    """Handle service exceptions that reach the HTTP layer."""
    logger.error(f"Service exception: {exc.message}", error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=exc.to_dict())


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Three-tier cache service (local LRU, Redis metadata, S3-compatible object store)",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Middleware executes in reverse order of registration: the request id is
    # bound first, so errors caught below are logged with it.
    add_error_handling_middleware(app, include_traceback=(settings.app.ENVIRONMENT == "development"))
    app.middleware("http")(request_id_middleware)

    app.add_exception_handler(TierCacheError, tiercache_exception_handler)

    base_path = settings.app.API_BASE_PATH

    app.include_router(health_router, prefix=base_path)
    app.include_router(cache_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    return app


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Run the service with uvicorn (console script: tiercache-server)."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "tiercache.application.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.effective_level.lower(),
    )


if __name__ == "__main__":
    main()
