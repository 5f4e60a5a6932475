"""Tests for run statistics formatting and titles."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from runledger.metrics.base import TimeOfDay
from runledger.metrics.stats import (
    activity_title,
    format_distance_km,
    format_duration,
    format_pace,
    time_of_day,
)

CET = timezone(timedelta(hours=1))


class TestFormatting:
    @pytest.mark.parametrize(
        ("duration", "expected"),
        [
            (timedelta(seconds=0), "0:00"),
            (timedelta(minutes=25, seconds=7), "25:07"),
            (timedelta(hours=1, minutes=2, seconds=3), "1:02:03"),
            (timedelta(hours=3, seconds=59, milliseconds=900), "3:00:59"),
        ],
    )
    def test_format_duration(self, duration: timedelta, expected: str) -> None:
        assert format_duration(duration) == expected

    def test_format_distance_km_two_decimals(self) -> None:
        assert format_distance_km(15012.34) == "15.01"
        assert format_distance_km(0.0) == "0.00"

    def test_format_pace_truncates(self) -> None:
        assert format_pace(300.0) == "5:00"
        assert format_pace(325.9) == "5:25"


class TestTimeOfDay:
    @pytest.mark.parametrize(
        ("hour", "expected"),
        [
            (5, TimeOfDay.MORNING),
            (11, TimeOfDay.MORNING),
            (12, TimeOfDay.AFTERNOON),
            (16, TimeOfDay.AFTERNOON),
            (17, TimeOfDay.EVENING),
            (20, TimeOfDay.EVENING),
            (21, TimeOfDay.NIGHT),
            (4, TimeOfDay.NIGHT),
        ],
    )
    def test_hour_boundaries(self, hour: int, expected: TimeOfDay) -> None:
        instant = datetime(2025, 1, 15, hour, 30, tzinfo=timezone.utc)
        assert time_of_day(instant, timezone.utc) is expected

    def test_uses_the_given_zone(self) -> None:
        # 04:30 UTC is 05:30 CET
        instant = datetime(2025, 1, 15, 4, 30, tzinfo=timezone.utc)
        assert time_of_day(instant, timezone.utc) is TimeOfDay.NIGHT
        assert time_of_day(instant, CET) is TimeOfDay.MORNING

    def test_activity_title(self) -> None:
        instant = datetime(2025, 6, 21, 18, 0, tzinfo=timezone.utc)
        assert activity_title(instant, timezone.utc) == "Evening run"
