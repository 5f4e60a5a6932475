"""Service wiring and the FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, Request

from runledger.config import Settings, get_settings
from runledger.config_loader import get_sync_config
from runledger.sessions.cache import JsonFileRunSessionCache
from runledger.sessions.repository import RunSessionRepository
from runledger.sessions.source import JsonExportTelemetrySource, TelemetrySource
from runledger.sync.api_client import ApiClient
from runledger.sync.credentials import CredentialsStore, FileCredentialsStore
from runledger.sync.repository import SyncRepository
from runledger.sync.scheduler import SyncScheduler
from runledger.sync.setup import SetupService
from runledger.sync.status_store import SyncStatusStore


@dataclass
class Services:
    """Everything the routes need, built once per process."""

    credentials: CredentialsStore
    status_store: SyncStatusStore
    api_client: ApiClient
    telemetry: TelemetrySource
    sync_repository: SyncRepository
    sessions: RunSessionRepository
    scheduler: SyncScheduler
    setup: SetupService

    async def aclose(self) -> None:
        await self.scheduler.cancel_all()
        await self.sessions.wait_for_background()
        await self.api_client.aclose()


def build_services(settings: Settings) -> Services:
    sync_config = get_sync_config()
    tz = ZoneInfo(settings.local_timezone) if settings.local_timezone else None

    credentials = FileCredentialsStore(settings.credentials_path)
    status_store = SyncStatusStore(settings.sync_status_path)
    api_client = ApiClient(credentials, sync_config.api)
    telemetry = JsonExportTelemetrySource(settings.telemetry_export_path, tz=tz)
    sync_repository = SyncRepository(api_client, status_store, credentials, telemetry)
    sessions = RunSessionRepository(
        JsonFileRunSessionCache(settings.session_cache_path),
        telemetry,
        sync_callback=sync_repository.sync_sessions,
    )
    scheduler = SyncScheduler(telemetry, sync_repository, sync_config.scheduler)
    setup = SetupService(api_client, credentials, status_store, scheduler, sessions)
    return Services(
        credentials=credentials,
        status_store=status_store,
        api_client=api_client,
        telemetry=telemetry,
        sync_repository=sync_repository,
        sessions=sessions,
        scheduler=scheduler,
        setup=setup,
    )


def get_services(request: Request) -> Services:
    """Return the services built by the app lifespan."""
    services: Services | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialised")
    return services


# Annotated shortcuts for route signatures
AppServices = Annotated[Services, Depends(get_services)]
AppSettings = Annotated[Settings, Depends(get_settings)]
