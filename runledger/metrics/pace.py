"""Speed to pace conversions."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import timedelta

from runledger.metrics.base import PaceSample, SpeedSample


def speed_to_pace(speed_mps: float) -> float | None:
    """Convert speed in m/s to pace in seconds per km.

    Returns None for zero or negative speed (stationary), never zero or
    infinity.
    """
    if not math.isfinite(speed_mps) or speed_mps <= 0.0:
        return None
    return 1000.0 / speed_mps


def average_pace(duration: timedelta, distance_meters: float) -> float | None:
    """Average pace in seconds per km over ``distance_meters``.

    Returns None if the distance is zero or negative.
    """
    if distance_meters <= 0.0:
        return None
    return duration.total_seconds() / (distance_meters / 1000.0)


def to_pace_samples(speed_samples: Iterable[SpeedSample]) -> list[PaceSample]:
    """Map speed samples to pace samples, dropping stationary readings.

    Input order is preserved.
    """
    samples: list[PaceSample] = []
    for sample in speed_samples:
        pace = speed_to_pace(sample.speed_mps)
        if pace is not None:
            samples.append(PaceSample(timestamp=sample.timestamp, seconds_per_km=pace))
    return samples
