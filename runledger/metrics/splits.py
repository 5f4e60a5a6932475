"""Per-kilometre split computation from instantaneous speed samples.

Consumer-grade speed readings integrate to a distance that drifts from the
GPS total recorded for the session.  The calculator integrates the speed
series with the trapezoidal rule, scales every interval so the integrated
distance matches the authoritative total, and linearly interpolates the
instant each kilometre boundary is crossed.  Scaling keeps the pacing shape
of the run while enforcing the known total.

Usage::

    splits = compute_splits(
        samples,
        total_distance_meters=session.distance_meters,
        session_start=session.start_time,
    )
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timedelta

from runledger.metrics.base import PaceSplit, SpeedSample

logger = logging.getLogger("runledger.metrics.splits")

KILOMETER_METERS = 1000.0

# Residual distances at or below this are float noise, not a partial split.
NOISE_THRESHOLD_METERS = 0.1


def _clean_speed(speed_mps: float) -> float:
    """Speeds that are negative or not finite integrate as stationary."""
    if not math.isfinite(speed_mps) or speed_mps < 0.0:
        return 0.0
    return speed_mps


def _anchor_to_start(
    samples: list[SpeedSample], session_start: datetime | None
) -> list[SpeedSample]:
    """Prepend a zero-speed sample at the session start if telemetry lags it.

    The first speed reading often arrives a few seconds after the run began;
    without the anchor, kilometre 1 would be timed from that first reading.
    """
    if session_start is not None and session_start < samples[0].timestamp:
        return [SpeedSample(timestamp=session_start, speed_mps=0.0), *samples]
    return samples


def integrate_distance(samples: Sequence[SpeedSample]) -> float:
    """Trapezoidal integral of a time-sorted speed series, in metres."""
    total = 0.0
    for prev, cur in zip(samples, samples[1:]):
        elapsed = (cur.timestamp - prev.timestamp).total_seconds()
        total += (_clean_speed(prev.speed_mps) + _clean_speed(cur.speed_mps)) / 2.0 * elapsed
    return total


def calibration_factor(raw_distance: float, total_distance_meters: float | None) -> float:
    """Ratio that rescales the integrated distance onto the trusted total.

    Returns 1.0 when no usable total is given or nothing was integrated.
    """
    if total_distance_meters is None or total_distance_meters < 0.0:
        return 1.0
    if raw_distance <= 0.0:
        return 1.0
    return total_distance_meters / raw_distance


def compute_splits(
    samples: Sequence[SpeedSample],
    total_distance_meters: float | None = None,
    session_start: datetime | None = None,
) -> list[PaceSplit]:
    """Compute per-km splits from speed samples.

    Args:
        samples:               Speed samples in any order.
        total_distance_meters: Authoritative session distance to calibrate
                               against.  None disables calibration.
        session_start:         True session start; anchors kilometre 1.

    Returns:
        Full 1000 m splits in kilometre order, followed by at most one
        partial split.  Fewer than two samples yields an empty list.
    """
    if len(samples) < 2:
        return []

    ordered = sorted(samples, key=lambda s: s.timestamp)
    points = _anchor_to_start(ordered, session_start)

    raw_distance = integrate_distance(points)
    scale = calibration_factor(raw_distance, total_distance_meters)
    logger.debug(
        "Integrated %.1f m from %d samples, scale factor %.4f",
        raw_distance, len(points), scale,
    )

    splits: list[PaceSplit] = []
    cumulative_distance = 0.0
    cumulative_duration = timedelta(0)
    split_start = points[0].timestamp
    current_km = 1

    for prev, cur in zip(points, points[1:]):
        elapsed = (cur.timestamp - prev.timestamp).total_seconds()
        avg_speed = (_clean_speed(prev.speed_mps) + _clean_speed(cur.speed_mps)) / 2.0
        interval_distance = avg_speed * elapsed * scale
        distance_before = cumulative_distance
        cumulative_distance += interval_distance

        # One interval may cross several boundaries on sparse telemetry.
        while cumulative_distance >= current_km * KILOMETER_METERS - NOISE_THRESHOLD_METERS:
            boundary = current_km * KILOMETER_METERS
            if interval_distance > 0.0:
                fraction = (boundary - distance_before) / interval_distance
                fraction = min(1.0, max(0.0, fraction))
            else:
                fraction = 0.0
            boundary_time = prev.timestamp + timedelta(seconds=elapsed * fraction)

            split_duration = boundary_time - split_start
            cumulative_duration += split_duration
            splits.append(
                PaceSplit(
                    kilometer_number=current_km,
                    distance_meters=KILOMETER_METERS,
                    split_duration=split_duration,
                    # Exactly 1 km, so seconds per km is the duration itself.
                    split_pace_seconds_per_km=split_duration.total_seconds(),
                    cumulative_duration=cumulative_duration,
                    is_partial=False,
                )
            )
            split_start = boundary_time
            current_km += 1

    remaining = cumulative_distance - (current_km - 1) * KILOMETER_METERS
    if remaining > NOISE_THRESHOLD_METERS:
        split_duration = points[-1].timestamp - split_start
        cumulative_duration += split_duration
        splits.append(
            PaceSplit(
                kilometer_number=current_km,
                distance_meters=remaining,
                split_duration=split_duration,
                split_pace_seconds_per_km=(
                    split_duration.total_seconds() / (remaining / KILOMETER_METERS)
                ),
                cumulative_duration=cumulative_duration,
                is_partial=True,
            )
        )

    return splits
