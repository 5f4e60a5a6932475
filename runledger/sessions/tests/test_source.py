"""Tests for the health-export telemetry source."""

from __future__ import annotations

from datetime import timedelta, timezone
from pathlib import Path

import pytest

from runledger.sessions.source import JsonExportTelemetrySource, TelemetrySourceError
from runledger.sessions.tests.conftest import BASE_TIME, export_session, iso, write_export


@pytest.fixture
def source(export_path: Path) -> JsonExportTelemetrySource:
    return JsonExportTelemetrySource(export_path, tz=timezone.utc)


class TestLoadRunSessions:
    @pytest.mark.asyncio
    async def test_only_running_sessions_newest_first(self, source, export_path: Path) -> None:
        write_export(export_path, [
            export_session("old", BASE_TIME - timedelta(days=2)),
            export_session("ride", BASE_TIME - timedelta(days=1), exercise_type="biking"),
            export_session("new", BASE_TIME),
            export_session("treadmill", BASE_TIME - timedelta(days=1), exercise_type="RUNNING_TREADMILL"),
        ])

        sessions = await source.load_run_sessions()

        assert [s.id for s in sessions] == ["new", "treadmill", "old"]

    @pytest.mark.asyncio
    async def test_aggregates(self, source, export_path: Path) -> None:
        write_export(export_path, [export_session("a", BASE_TIME, minutes=20, distance_meters=4000.0)])

        (session,) = await source.load_run_sessions()

        assert session.start_time == BASE_TIME
        assert session.distance_meters == 4000.0
        assert session.active_duration == timedelta(minutes=20)
        assert session.average_pace_seconds_per_km == pytest.approx(300.0)
        assert session.average_heart_rate_bpm == 150
        assert session.title == "Morning run"

    @pytest.mark.asyncio
    async def test_active_duration_preferred_over_elapsed(self, source, export_path: Path) -> None:
        write_export(export_path, [
            export_session("a", BASE_TIME, minutes=20, active_duration_seconds=1000)
        ])

        (session,) = await source.load_run_sessions()

        assert session.active_duration == timedelta(seconds=1000)
        assert session.average_pace_seconds_per_km == pytest.approx(250.0)

    @pytest.mark.asyncio
    async def test_missing_distance_and_heart_rate(self, source, export_path: Path) -> None:
        write_export(export_path, [
            export_session("a", BASE_TIME, distance_meters=None, heart_rates=())
        ])

        (session,) = await source.load_run_sessions()

        assert session.distance_meters == 0.0
        assert session.average_pace_seconds_per_km is None
        assert session.average_heart_rate_bpm is None

    @pytest.mark.asyncio
    async def test_negative_distance_is_clamped(self, source, export_path: Path) -> None:
        write_export(export_path, [export_session("a", BASE_TIME, distance_meters=-12.0)])

        (session,) = await source.load_run_sessions()

        assert session.distance_meters == 0.0

    @pytest.mark.asyncio
    async def test_sessions_after(self, source, export_path: Path) -> None:
        write_export(export_path, [
            export_session("old", BASE_TIME - timedelta(days=1)),
            export_session("new", BASE_TIME),
        ])

        sessions = await source.load_run_sessions_after(BASE_TIME - timedelta(hours=12))

        assert [s.id for s in sessions] == ["new"]


class TestErrors:
    @pytest.mark.asyncio
    async def test_missing_file(self, source) -> None:
        with pytest.raises(TelemetrySourceError, match="Cannot read"):
            await source.load_run_sessions()

    @pytest.mark.asyncio
    async def test_malformed_file(self, source, export_path: Path) -> None:
        export_path.write_text('{"sessions": [{"id": "a"}]}', encoding="utf-8")

        with pytest.raises(TelemetrySourceError, match="Malformed"):
            await source.load_run_sessions()

    @pytest.mark.asyncio
    async def test_unknown_session_detail(self, source, export_path: Path) -> None:
        write_export(export_path, [export_session("a", BASE_TIME)])

        with pytest.raises(TelemetrySourceError, match="not found"):
            await source.load_run_detail("zzz", BASE_TIME, BASE_TIME + timedelta(minutes=20))


class TestLoadRunDetail:
    @pytest.mark.asyncio
    async def test_detail_series_and_calibrated_splits(self, source, export_path: Path) -> None:
        write_export(export_path, [export_session("a", BASE_TIME, minutes=20, distance_meters=4000.0)])

        detail = await source.load_run_detail("a", BASE_TIME, BASE_TIME + timedelta(minutes=20))

        assert detail.session.id == "a"
        assert detail.total_steps == 3100
        assert [s.bpm for s in detail.heart_rate_samples] == [140, 150, 160]
        assert len(detail.pace_samples) == 120
        assert all(p.seconds_per_km == pytest.approx(1000 / 3.0) for p in detail.pace_samples)

        assert [s.kilometer_number for s in detail.splits] == [1, 2, 3, 4]
        assert not any(s.is_partial for s in detail.splits)
        assert sum(s.distance_meters for s in detail.splits) == pytest.approx(4000.0, abs=1.0)
        assert detail.splits[-1].cumulative_duration.total_seconds() == pytest.approx(1200.0, abs=0.5)

    @pytest.mark.asyncio
    async def test_samples_outside_window_are_dropped(self, source, export_path: Path) -> None:
        session = export_session("a", BASE_TIME, minutes=20)
        session["heart_rate"].append({"time": iso(BASE_TIME + timedelta(hours=2)), "bpm": 90})
        session["heart_rate"].insert(0, {"time": iso(BASE_TIME - timedelta(minutes=5)), "bpm": 80})
        write_export(export_path, [session])

        detail = await source.load_run_detail("a", BASE_TIME, BASE_TIME + timedelta(minutes=20))

        assert [s.bpm for s in detail.heart_rate_samples] == [140, 150, 160]

    @pytest.mark.asyncio
    async def test_no_speed_samples_gives_no_splits(self, source, export_path: Path) -> None:
        session = export_session("a", BASE_TIME)
        session["speed"] = []
        write_export(export_path, [session])

        detail = await source.load_run_detail("a", BASE_TIME, BASE_TIME + timedelta(minutes=20))

        assert detail.splits == []
        assert detail.pace_samples == []
