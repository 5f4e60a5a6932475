"""Shared fixtures and fakes for sync engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from runledger.config_loader import ApiConfig, SchedulerConfig
from runledger.metrics.base import RunSession
from runledger.sessions.source import TelemetrySource, TelemetrySourceError
from runledger.sync.api_client import ApiClient, RunLedgerApiService
from runledger.sync.credentials import InMemoryCredentialsStore, ServerCredentials
from runledger.sync.repository import SyncRepository
from runledger.sync.status_store import SyncStatusStore

BASE_URL = "https://runs.example.com/api/v1"
TOKEN = "1|test-token"
BASE_TIME = datetime(2025, 6, 21, 7, 0, tzinfo=timezone.utc)


def make_session(run_id: str, days_ago: int = 0, distance_meters: float = 5000.0) -> RunSession:
    """A 30-minute run starting ``days_ago`` days before BASE_TIME."""
    start = BASE_TIME - timedelta(days=days_ago)
    return RunSession(
        id=run_id,
        start_time=start,
        end_time=start + timedelta(minutes=30),
        distance_meters=distance_meters,
        active_duration=timedelta(minutes=30),
        average_pace_seconds_per_km=360.0,
        average_heart_rate_bpm=150,
        title="Morning run",
    )


def batch_response(status_code: int = 200, body: dict | None = None) -> MagicMock:
    """Mock httpx.Response for ``POST runs/batch``."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body if body is not None else {}
    response.text = ""
    return response


def batch_body(results: list[dict], created: int | None = None, skipped: int | None = None) -> dict:
    """Batch response body; totals default to counts of each status in ``results``."""
    if created is None:
        created = sum(1 for r in results if r["status"] == "created")
    if skipped is None:
        skipped = sum(1 for r in results if r["status"] == "skipped")
    return {"data": {"created": created, "skipped": skipped, "results": results}}


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(timeout_seconds=30.0, connection_test_timeout_seconds=15.0, default_per_page=15)


@pytest.fixture
def scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(
        periodic_interval_seconds=3600.0,
        backoff_initial_seconds=30.0,
        backoff_multiplier=2.0,
        backoff_max_seconds=18000.0,
        max_retries=3,
    )


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def status_path(tmp_path: Path) -> Path:
    return tmp_path / "sync_status.json"


@pytest.fixture
def status_store(status_path: Path) -> SyncStatusStore:
    return SyncStatusStore(status_path)


@pytest.fixture
def credentials() -> InMemoryCredentialsStore:
    return InMemoryCredentialsStore(ServerCredentials(base_url=BASE_URL, token=TOKEN))


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def telemetry() -> AsyncMock:
    """Telemetry source whose detail reads fail, so uploads use summaries."""
    source = AsyncMock(spec=TelemetrySource)
    source.load_run_detail.side_effect = TelemetrySourceError("no detail")
    source.load_run_sessions.return_value = []
    return source


@pytest.fixture
def api_service() -> AsyncMock:
    service = AsyncMock(spec=RunLedgerApiService)
    service.create_runs_batch.return_value = batch_response(200, batch_body([]))
    return service


@pytest.fixture
def api_client(api_service: AsyncMock) -> MagicMock:
    client = MagicMock(spec=ApiClient)
    client.create_service = AsyncMock(return_value=api_service)
    return client


@pytest.fixture
def sync_repository(
    api_client: MagicMock,
    status_store: SyncStatusStore,
    credentials: InMemoryCredentialsStore,
    telemetry: AsyncMock,
) -> SyncRepository:
    return SyncRepository(api_client, status_store, credentials, telemetry)
