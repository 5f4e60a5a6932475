"""Pydantic models for the local operations API: runs, sync state, connection."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field

from runledger.metrics.base import RunSession
from runledger.models.base import RunLedgerBase
from runledger.sync.results import (
    Error,
    NotConnected,
    Success,
    SyncResult,
    Unauthorized,
    scheduler_outcome,
)
from runledger.sync.status_store import SyncRecord


# ---------- Runs ----------

class RunRead(RunLedgerBase):
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    distance_meters: float
    active_duration_seconds: float
    average_pace_seconds_per_km: float | None = None
    average_heart_rate_bpm: int | None = None
    sync_state: str | None = None  # PENDING | SYNCED | FAILED, None = never attempted
    server_id: int | None = None
    failure_message: str | None = None

    @classmethod
    def from_domain(cls, session: RunSession, record: SyncRecord | None) -> "RunRead":
        return cls(
            id=session.id,
            title=session.title,
            start_time=session.start_time,
            end_time=session.end_time,
            distance_meters=session.distance_meters,
            active_duration_seconds=session.active_duration.total_seconds(),
            average_pace_seconds_per_km=session.average_pace_seconds_per_km,
            average_heart_rate_bpm=session.average_heart_rate_bpm,
            sync_state=record.state.value if record else None,
            server_id=record.server_id if record else None,
            failure_message=record.failure_message if record else None,
        )


class RefreshRead(RunLedgerBase):
    mode: str  # incremental | full
    loaded: int = Field(ge=0)


# ---------- Sync ----------

class SyncResultRead(RunLedgerBase):
    result: str  # success | not_connected | unauthorized | error
    outcome: str  # scheduler verdict: success | failure | retry
    synced: int | None = None
    total: int | None = None
    message: str | None = None

    @classmethod
    def from_result(cls, result: SyncResult) -> "SyncResultRead":
        outcome = scheduler_outcome(result).value
        if isinstance(result, Success):
            return cls(result="success", outcome=outcome, synced=result.synced, total=result.total)
        if isinstance(result, NotConnected):
            return cls(result="not_connected", outcome=outcome)
        if isinstance(result, Unauthorized):
            return cls(result="unauthorized", outcome=outcome)
        if isinstance(result, Error):
            return cls(result="error", outcome=outcome, message=result.message)
        raise TypeError(f"Unknown sync result: {result!r}")


class SyncStatusRead(RunLedgerBase):
    is_connected: bool
    server_url: str | None = None
    last_sync_time: datetime | None = None

    @staticmethod
    def millis_to_datetime(millis: int | None) -> datetime | None:
        if millis is None:
            return None
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


# ---------- Connection ----------

class ConnectionCreate(RunLedgerBase):
    base_url: str
    token: str


class ConnectionRead(RunLedgerBase):
    is_connected: bool
    server_url: str | None = None
