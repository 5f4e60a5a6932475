"""Canonical run models shared by the metrics engine, the telemetry source
and the sync engine.

All timestamps are timezone-aware UTC datetimes and all durations are
``timedelta``.  These types are the single source of truth consumed by the
split calculator, the session cache and the upload mapper.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


# ---------------------------------------------------------------------------
# Raw samples
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpeedSample:
    """Instantaneous speed reading.

    Attributes:
        timestamp: UTC instant of the reading.
        speed_mps: Speed in metres per second.  Zero means stationary.
    """

    timestamp: datetime
    speed_mps: float


@dataclass(frozen=True)
class HeartRateSample:
    """Heart-rate reading in beats per minute."""

    timestamp: datetime
    bpm: int


@dataclass(frozen=True)
class PaceSample:
    """Derived pace reading.  Never produced for stationary speed samples."""

    timestamp: datetime
    seconds_per_km: float


# ---------------------------------------------------------------------------
# Sessions and derived metrics
# ---------------------------------------------------------------------------


class TimeOfDay(Enum):
    """Coarse part of the day a run started in, with its display title."""

    MORNING = "Morning run"
    AFTERNOON = "Afternoon run"
    EVENING = "Evening run"
    NIGHT = "Night run"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class RunSession:
    """Summary of one completed run.

    Attributes:
        id:                          Stable id assigned by the telemetry source.
        start_time:                  UTC start instant.
        end_time:                    UTC end instant (>= start_time).
        distance_meters:             Authoritative total distance (GPS-derived).
        active_duration:             Moving time, excluding pauses.
        average_pace_seconds_per_km: Average pace, None without distance.
        average_heart_rate_bpm:      Mean heart rate, None without samples.
        title:                       Time-of-day label, e.g. "Morning run".
    """

    id: str
    start_time: datetime
    end_time: datetime
    distance_meters: float
    active_duration: timedelta
    average_pace_seconds_per_km: float | None = None
    average_heart_rate_bpm: int | None = None
    title: str = ""


@dataclass(frozen=True)
class PaceSplit:
    """Performance summary for one kilometre of a run.

    Every split covers exactly 1000 m except a trailing partial split.

    Attributes:
        kilometer_number:          1-based index of the kilometre.
        distance_meters:           1000.0, or the residual for a partial split.
        split_duration:            Time taken for this split.
        split_pace_seconds_per_km: Pace over this split.
        cumulative_duration:       Elapsed time at the end of this split.
        is_partial:                True only for a trailing split shorter than 1 km.
    """

    kilometer_number: int
    distance_meters: float
    split_duration: timedelta
    split_pace_seconds_per_km: float
    cumulative_duration: timedelta
    is_partial: bool = False


@dataclass(frozen=True)
class RunDetail:
    """A session together with its sample series and splits.

    Assembled on demand from telemetry; never cached long-term.
    """

    session: RunSession
    total_steps: int = 0
    heart_rate_samples: list[HeartRateSample] = field(default_factory=list)
    pace_samples: list[PaceSample] = field(default_factory=list)
    splits: list[PaceSplit] = field(default_factory=list)
