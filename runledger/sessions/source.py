"""Telemetry sources: where completed runs and their sample series come from.

``TelemetrySource`` is the seam the rest of RunLedger depends on; the
bundled implementation reads a health-data export file (see
``runledger.models.export`` for the format).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, tzinfo
from pathlib import Path

from pydantic import ValidationError

from runledger.metrics.base import HeartRateSample, RunDetail, RunSession, SpeedSample
from runledger.metrics.pace import average_pace, to_pace_samples
from runledger.metrics.splits import compute_splits
from runledger.metrics.stats import activity_title
from runledger.models.export import ExportSession, HealthExport

logger = logging.getLogger("runledger.sessions.source")


class TelemetrySourceError(Exception):
    """Raised when telemetry cannot be read or a session cannot be found."""


class TelemetrySource(ABC):
    """Read-only access to recorded runs."""

    @abstractmethod
    async def load_run_sessions(self) -> list[RunSession]:
        """Return every running session, newest start first."""

    @abstractmethod
    async def load_run_sessions_after(self, after: datetime) -> list[RunSession]:
        """Return running sessions that end after ``after``, newest start first."""

    @abstractmethod
    async def load_run_detail(
        self, session_id: str, start_time: datetime, end_time: datetime
    ) -> RunDetail:
        """Return the session with its heart-rate, pace and split series.

        Raises:
            TelemetrySourceError: If the session cannot be loaded.
        """


# ---------------------------------------------------------------------------
# Health export implementation
# ---------------------------------------------------------------------------


def _mean_heart_rate(session: ExportSession) -> int | None:
    if not session.heart_rate:
        return None
    return round(sum(s.bpm for s in session.heart_rate) / len(session.heart_rate))


def _active_duration(session: ExportSession) -> timedelta:
    if session.active_duration_seconds is not None and session.active_duration_seconds >= 0:
        return timedelta(seconds=session.active_duration_seconds)
    return session.end_time - session.start_time


def to_run_session(session: ExportSession, tz: tzinfo | None = None) -> RunSession:
    """Derive the summary for one exported session.

    Args:
        session: Parsed export record.
        tz:      Zone used for the time-of-day title.  None = system zone.
    """
    distance = max(session.distance_meters or 0.0, 0.0)
    duration = _active_duration(session)
    return RunSession(
        id=session.id,
        start_time=session.start_time,
        end_time=session.end_time,
        distance_meters=distance,
        active_duration=duration,
        average_pace_seconds_per_km=average_pace(duration, distance),
        average_heart_rate_bpm=_mean_heart_rate(session),
        title=activity_title(session.start_time, tz),
    )


class JsonExportTelemetrySource(TelemetrySource):
    """Reads runs from a health-data export JSON file.

    The file is re-read on every call so a refreshed export is picked up
    without restarting.

    Args:
        path: Location of the export file.
        tz:   Zone for run titles.  None = system zone.
    """

    def __init__(self, path: Path, tz: tzinfo | None = None) -> None:
        self._path = path
        self._tz = tz

    def _read_export(self) -> HealthExport:
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise TelemetrySourceError(f"Cannot read health export {self._path}: {exc}") from exc
        try:
            return HealthExport.model_validate_json(raw)
        except ValidationError as exc:
            raise TelemetrySourceError(
                f"Malformed health export {self._path}: {exc.error_count()} error(s)"
            ) from exc

    async def _running_sessions(self) -> list[ExportSession]:
        export = await asyncio.to_thread(self._read_export)
        sessions = [s for s in export.sessions if s.is_running]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions

    async def load_run_sessions(self) -> list[RunSession]:
        sessions = await self._running_sessions()
        logger.debug("Loaded %d running sessions from %s", len(sessions), self._path)
        return [to_run_session(s, self._tz) for s in sessions]

    async def load_run_sessions_after(self, after: datetime) -> list[RunSession]:
        sessions = await self._running_sessions()
        return [to_run_session(s, self._tz) for s in sessions if s.end_time > after]

    async def load_run_detail(
        self, session_id: str, start_time: datetime, end_time: datetime
    ) -> RunDetail:
        sessions = await self._running_sessions()
        match = next((s for s in sessions if s.id == session_id), None)
        if match is None:
            raise TelemetrySourceError(f"Run session {session_id} not found")

        heart_rate, speed = await asyncio.gather(
            asyncio.to_thread(self._heart_rate_samples, match, start_time, end_time),
            asyncio.to_thread(self._speed_samples, match, start_time, end_time),
        )

        session = to_run_session(match, self._tz)
        splits = compute_splits(
            speed,
            total_distance_meters=session.distance_meters if session.distance_meters > 0 else None,
            session_start=session.start_time,
        )
        return RunDetail(
            session=session,
            total_steps=match.steps or 0,
            heart_rate_samples=heart_rate,
            pace_samples=to_pace_samples(speed),
            splits=splits,
        )

    @staticmethod
    def _heart_rate_samples(
        session: ExportSession, start_time: datetime, end_time: datetime
    ) -> list[HeartRateSample]:
        samples = [
            HeartRateSample(timestamp=s.time, bpm=s.bpm)
            for s in session.heart_rate
            if start_time <= s.time <= end_time
        ]
        samples.sort(key=lambda s: s.timestamp)
        return samples

    @staticmethod
    def _speed_samples(
        session: ExportSession, start_time: datetime, end_time: datetime
    ) -> list[SpeedSample]:
        samples = [
            SpeedSample(timestamp=s.time, speed_mps=s.speed_mps)
            for s in session.speed
            if start_time <= s.time <= end_time
        ]
        samples.sort(key=lambda s: s.timestamp)
        return samples
