"""RunLedger API — FastAPI application entry point.

Run locally:
    uvicorn runledger.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from runledger.config import get_settings
from runledger.dependencies import build_services
from runledger.routers import connection, health, runs, sync

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("runledger")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting RunLedger API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    services = build_services(settings)
    app.state.services = services

    if settings.sync_on_startup and await services.credentials.get() is not None:
        services.scheduler.schedule_periodic()
        services.scheduler.enqueue_one_time()

    yield
    await services.aclose()
    logger.info("RunLedger API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="RunLedger API",
        description="Local operations API for run metrics and run log sync.",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Health check (outside the v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(runs.router, prefix=v1_prefix)
    app.include_router(sync.router, prefix=v1_prefix)
    app.include_router(connection.router, prefix=v1_prefix)

    return app


app = create_app()
