"""Health check endpoint."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from runledger.dependencies import AppServices, AppSettings

router = APIRouter(tags=["system"])
logger = logging.getLogger("runledger.health")


@router.get("/health")
async def health_check(services: AppServices, settings: AppSettings) -> dict:
    """Liveness probe. Returns 200 if the process is up.

    Also reports whether run log credentials are stored.
    """
    connected = await services.credentials.get() is not None
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "run_log": "connected" if connected else "not_connected",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
