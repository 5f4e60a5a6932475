"""Schemas for the health-data export read by the telemetry source.

Expected document::

    {
      "sessions": [
        {
          "id": "5f0c...",
          "exercise_type": "running",
          "start_time": "2025-06-21T07:00:00Z",
          "end_time": "2025-06-21T07:30:00Z",
          "distance_meters": 5012.4,
          "active_duration_seconds": 1740,
          "steps": 5230,
          "heart_rate": [{"time": "2025-06-21T07:00:05Z", "bpm": 128}],
          "speed": [{"time": "2025-06-21T07:00:05Z", "speed_mps": 2.9}]
        }
      ]
    }

Only ``id``, ``exercise_type``, ``start_time`` and ``end_time`` are required.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, Field

from runledger.models.base import RunLedgerBase

RUNNING_EXERCISE_TYPES = frozenset({"running", "running_treadmill"})


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class ExportHeartRateSample(RunLedgerBase):
    time: UtcDatetime
    bpm: int = Field(ge=0)


class ExportSpeedSample(RunLedgerBase):
    time: UtcDatetime
    speed_mps: float


class ExportSession(RunLedgerBase):
    id: str = Field(min_length=1)
    exercise_type: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    distance_meters: float | None = None
    active_duration_seconds: float | None = None
    steps: int | None = None
    heart_rate: list[ExportHeartRateSample] = Field(default_factory=list)
    speed: list[ExportSpeedSample] = Field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.exercise_type.strip().lower() in RUNNING_EXERCISE_TYPES


class HealthExport(RunLedgerBase):
    sessions: list[ExportSession] = Field(default_factory=list)
