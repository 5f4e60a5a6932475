"""Shared fixtures and sample generators for metrics engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from runledger.metrics.base import SpeedSample

# Canonical test start instant
BASE_TIME = datetime(2025, 6, 21, 7, 0, tzinfo=timezone.utc)


def constant_speed_samples(
    start_offset_s: int,
    speed_mps: float,
    duration_s: int,
    interval_s: int = 10,
) -> list[SpeedSample]:
    """Speed samples every ``interval_s`` seconds, both ends inclusive."""
    return [
        SpeedSample(BASE_TIME + timedelta(seconds=start_offset_s + t), speed_mps)
        for t in range(0, duration_s + 1, interval_s)
    ]


@pytest.fixture
def five_km_samples() -> list[SpeedSample]:
    """5.0 m/s for 1000 s: exactly 5000 m of raw distance."""
    return constant_speed_samples(0, 5.0, 1000)
