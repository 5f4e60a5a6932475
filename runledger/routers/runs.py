"""Cached runs and cache refresh."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from runledger.dependencies import AppServices
from runledger.models.sync import RefreshRead, RunRead
from runledger.sessions.source import TelemetrySourceError

router = APIRouter(prefix="/runs", tags=["runs"])
logger = logging.getLogger("runledger.routers.runs")


@router.get("", response_model=list[RunRead])
async def list_runs(services: AppServices) -> Any:
    pairs = await services.sessions.runs_with_status(services.status_store)
    return [RunRead.from_domain(session, record) for session, record in pairs]


@router.post("/refresh", response_model=RefreshRead)
async def refresh_runs(
    services: AppServices,
    full: bool = Query(default=False, description="Reload everything instead of only new runs"),
) -> Any:
    try:
        if full:
            loaded = await services.sessions.refresh_full()
        else:
            loaded = await services.sessions.refresh_incremental()
    except TelemetrySourceError as exc:
        logger.warning("Refresh failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return RefreshRead(mode="full" if full else "incremental", loaded=loaded)
