"""Display formatting for run statistics and the time-of-day run title."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from runledger.metrics.base import TimeOfDay


def format_duration(duration: timedelta) -> str:
    """Format as ``h:mm:ss`` from one hour up, otherwise ``m:ss``."""
    total_seconds = int(duration.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_distance_km(distance_meters: float) -> str:
    """Format metres as kilometres with two decimals, e.g. 15012.34 -> "15.01"."""
    return f"{distance_meters / 1000.0:.2f}"


def format_pace(seconds_per_km: float) -> str:
    """Format a pace as ``m:ss``; fractional seconds are truncated."""
    total_seconds = int(seconds_per_km)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def time_of_day(instant: datetime, tz: tzinfo | None = None) -> TimeOfDay:
    """Classify an instant in ``tz`` (the system zone when None).

    Morning 05:00-11:59, afternoon 12:00-16:59, evening 17:00-20:59,
    night otherwise.
    """
    hour = instant.astimezone(tz).hour
    if 5 <= hour <= 11:
        return TimeOfDay.MORNING
    if 12 <= hour <= 16:
        return TimeOfDay.AFTERNOON
    if 17 <= hour <= 20:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def activity_title(start_time: datetime, tz: tzinfo | None = None) -> str:
    return time_of_day(start_time, tz).label
