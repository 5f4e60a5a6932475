"""Manual sync trigger and sync status."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from runledger.dependencies import AppServices
from runledger.models.sync import SyncResultRead, SyncStatusRead

router = APIRouter(prefix="/sync", tags=["sync"])
logger = logging.getLogger("runledger.routers.sync")


@router.post("", response_model=SyncResultRead)
async def sync_now(services: AppServices) -> Any:
    """Upload every cached run that is not yet synced."""
    sessions = await services.sessions.sessions()
    result = await services.sync_repository.sync_sessions(sessions)
    return SyncResultRead.from_result(result)


@router.get("/status", response_model=SyncStatusRead)
async def sync_status(services: AppServices) -> Any:
    credentials = await services.credentials.get()
    last_sync = await services.status_store.last_sync_time()
    return SyncStatusRead(
        is_connected=credentials is not None,
        server_url=credentials.base_url if credentials else None,
        last_sync_time=SyncStatusRead.millis_to_datetime(last_sync),
    )
