"""Batch upload of completed runs to the remote run log.

One pass:
    1. Bail out with NotConnected when there are no credentials.
    2. Pick the runs whose record is missing or not SYNCED.
    3. Mark them PENDING, then enrich each with its full detail concurrently.
    4. Send a single ``POST runs/batch`` and reconcile the per-item results.

The server dedupes by start time, so re-sending a run whose result was lost
comes back as ``skipped`` and is recorded as SYNCED.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import timedelta

import httpx

from runledger.metrics.base import HeartRateSample, PaceSplit, RunDetail, RunSession
from runledger.models.api import (
    ApiErrorResponse,
    ApiResponse,
    BatchRunRequest,
    BatchRunResponseData,
    HeartRateSampleUpload,
    PaceSplitUpload,
    RunUpload,
)
from runledger.models.base import to_iso_instant
from runledger.sessions.source import TelemetrySource
from runledger.sync.api_client import ApiClient, RunLedgerApiService
from runledger.sync.credentials import CredentialsStore
from runledger.sync.results import Error, NotConnected, Success, SyncResult, Unauthorized
from runledger.sync.status_store import SyncStatusStore

logger = logging.getLogger("runledger.sync.repository")

_SYNCED_STATUSES = frozenset({"created", "skipped"})


# ---------------------------------------------------------------------------
# Upload mapping
# ---------------------------------------------------------------------------


def _whole_seconds(value: timedelta) -> int:
    return int(value.total_seconds())


def _heart_rate_upload(sample: HeartRateSample) -> HeartRateSampleUpload:
    return HeartRateSampleUpload(timestamp=to_iso_instant(sample.timestamp), bpm=int(sample.bpm))


def _split_upload(split: PaceSplit) -> PaceSplitUpload:
    return PaceSplitUpload(
        kilometer_number=split.kilometer_number,
        split_time_seconds=_whole_seconds(split.split_duration),
        pace_seconds_per_km=int(split.split_pace_seconds_per_km),
        is_partial=split.is_partial,
        partial_distance_km=split.distance_meters / 1000.0 if split.is_partial else None,
    )


def session_to_upload(session: RunSession) -> RunUpload:
    """Minimal upload record: session aggregates only."""
    pace = session.average_pace_seconds_per_km
    return RunUpload(
        start_time=to_iso_instant(session.start_time),
        end_time=to_iso_instant(session.end_time),
        distance_km=session.distance_meters / 1000.0,
        duration_seconds=_whole_seconds(session.active_duration),
        avg_heart_rate=session.average_heart_rate_bpm,
        avg_pace_seconds_per_km=int(pace) if pace is not None else None,
    )


def detail_to_upload(detail: RunDetail) -> RunUpload:
    """Full upload record: aggregates plus steps, heart-rate samples and splits.

    Empty sample and split lists are left out of the record entirely.
    """
    upload = session_to_upload(detail.session)
    upload.steps = detail.total_steps
    upload.heart_rate_samples = [_heart_rate_upload(s) for s in detail.heart_rate_samples] or None
    upload.pace_splits = [_split_upload(s) for s in detail.splits] or None
    return upload


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SyncRepository:
    """Uploads unsynced runs and records the outcome per run.

    Args:
        api_client:        Builds the API service from stored credentials.
        status_store:      Persistent per-run sync state.
        credentials_store: Where the server credentials live.
        telemetry:         Source of full run detail for enrichment.
    """

    def __init__(
        self,
        api_client: ApiClient,
        status_store: SyncStatusStore,
        credentials_store: CredentialsStore,
        telemetry: TelemetrySource,
    ) -> None:
        self._api_client = api_client
        self._status_store = status_store
        self._credentials = credentials_store
        self._telemetry = telemetry
        self._in_flight: set[str] = set()

    async def sync_sessions(self, sessions: Sequence[RunSession]) -> SyncResult:
        """Upload every run in ``sessions`` that is not yet SYNCED.

        Returns:
            ``Success(synced, total)`` where ``total`` is ``len(sessions)``,
            ``NotConnected``, ``Unauthorized`` or ``Error(message)``.
        """
        if await self._credentials.get() is None:
            logger.debug("Sync skipped: no credentials")
            return NotConnected()

        service = await self._api_client.create_service()
        if service is None:
            return NotConnected()

        sync_map = await self._status_store.sync_map()
        unsynced: list[RunSession] = []
        seen: set[str] = set()
        for session in sessions:
            if session.id in seen or session.id in self._in_flight:
                continue
            record = sync_map.get(session.id)
            if record is None or record.needs_sync:
                unsynced.append(session)
                seen.add(session.id)

        if not unsynced:
            return Success(synced=0, total=len(sessions))

        ids = [session.id for session in unsynced]
        self._in_flight.update(ids)
        try:
            return await self._upload(service, unsynced, total=len(sessions))
        finally:
            self._in_flight.difference_update(ids)

    async def _upload(
        self,
        service: RunLedgerApiService,
        unsynced: list[RunSession],
        total: int,
    ) -> SyncResult:
        await self._status_store.mark_pending(session.id for session in unsynced)

        runs = await asyncio.gather(*(self._build_upload(session) for session in unsynced))
        request = BatchRunRequest(runs=list(runs))
        logger.info("Uploading %d of %d runs", len(unsynced), total)

        try:
            response = await service.create_runs_batch(request)
            batch = self._parse_batch(response) if 200 <= response.status_code < 300 else None
        except Exception as exc:
            message = str(exc) or "Unknown error"
            logger.error("Batch upload failed: %s", message)
            for session in unsynced:
                await self._status_store.mark_failed(session.id, message)
            return Error(message)

        if batch is not None:
            await self._reconcile(unsynced, batch)
            synced = batch.created + batch.skipped
            logger.info(
                "Batch upload done: %d created, %d skipped", batch.created, batch.skipped
            )
            return Success(synced=synced, total=total)

        if response.status_code == 401:
            logger.warning("Batch upload rejected: token no longer valid")
            return Unauthorized()
        if response.status_code == 422:
            logger.warning("Batch upload failed validation: %s", _server_message(response))
            return Error("Validation error from server", retryable=False)
        logger.warning("Batch upload returned HTTP %d", response.status_code)
        return Error(f"Server returned {response.status_code}")

    async def _build_upload(self, session: RunSession) -> RunUpload:
        try:
            detail = await self._telemetry.load_run_detail(
                session.id, session.start_time, session.end_time
            )
            return detail_to_upload(detail)
        except Exception as exc:
            logger.warning("Detail unavailable for run %s, sending summary only: %s", session.id, exc)
            return session_to_upload(session)

    @staticmethod
    def _parse_batch(response: httpx.Response) -> BatchRunResponseData:
        return ApiResponse[BatchRunResponseData].model_validate(response.json()).data

    async def _reconcile(self, unsynced: list[RunSession], batch: BatchRunResponseData) -> None:
        for item in batch.results:
            if not 0 <= item.index < len(unsynced):
                logger.warning("Ignoring batch result with out-of-range index %d", item.index)
                continue
            run_id = unsynced[item.index].id
            if item.status in _SYNCED_STATUSES:
                if item.id is None:
                    logger.warning("Ignoring %s result for run %s without an id", item.status, run_id)
                    continue
                await self._status_store.mark_synced(run_id, item.id)
            else:
                await self._status_store.mark_failed(run_id, item.status)


def _server_message(response: httpx.Response) -> str:
    try:
        return ApiErrorResponse.model_validate(response.json()).message
    except ValueError:
        return response.text
