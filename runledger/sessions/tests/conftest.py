"""Shared fixtures for telemetry source and run cache tests."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from runledger.metrics.base import RunSession
from runledger.sessions.cache import JsonFileRunSessionCache

BASE_TIME = datetime(2025, 6, 21, 7, 0, tzinfo=timezone.utc)


def iso(instant: datetime) -> str:
    return instant.isoformat().replace("+00:00", "Z")


def export_session(
    session_id: str,
    start: datetime,
    minutes: int = 20,
    exercise_type: str = "running",
    distance_meters: float | None = 4000.0,
    speed_mps: float = 3.0,
    heart_rates: tuple[int, ...] = (140, 150, 160),
    **extra: Any,
) -> dict[str, Any]:
    """One exported session with speed samples every 10 s and evenly spread heart rates."""
    end = start + timedelta(minutes=minutes)
    seconds = minutes * 60
    speed = [
        {"time": iso(start + timedelta(seconds=t)), "speed_mps": speed_mps}
        for t in range(10, seconds + 1, 10)
    ]
    step = seconds // (len(heart_rates) + 1) if heart_rates else 0
    heart_rate = [
        {"time": iso(start + timedelta(seconds=step * (i + 1))), "bpm": bpm}
        for i, bpm in enumerate(heart_rates)
    ]
    data: dict[str, Any] = {
        "id": session_id,
        "exercise_type": exercise_type,
        "start_time": iso(start),
        "end_time": iso(end),
        "distance_meters": distance_meters,
        "steps": 3100,
        "heart_rate": heart_rate,
        "speed": speed,
    }
    data.update(extra)
    return data


def write_export(path: Path, sessions: list[dict[str, Any]]) -> Path:
    path.write_text(json.dumps({"sessions": sessions}), encoding="utf-8")
    return path


def make_run(run_id: str, days_ago: int = 0) -> RunSession:
    start = BASE_TIME - timedelta(days=days_ago)
    return RunSession(
        id=run_id,
        start_time=start,
        end_time=start + timedelta(minutes=30),
        distance_meters=5000.0,
        active_duration=timedelta(minutes=30),
        average_pace_seconds_per_km=360.0,
        average_heart_rate_bpm=150,
        title="Morning run",
    )


@pytest.fixture
def export_path(tmp_path: Path) -> Path:
    return tmp_path / "health_export.json"


@pytest.fixture
def cache(tmp_path: Path) -> JsonFileRunSessionCache:
    return JsonFileRunSessionCache(tmp_path / "run_sessions.json")
