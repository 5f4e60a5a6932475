"""Local cache of run summaries.

The cache holds ``RunSession`` summaries only; sample series are read from
telemetry on demand.  Listings are always ordered newest start first.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from runledger.metrics.base import RunSession
from runledger.storage import read_json, write_json_atomic

logger = logging.getLogger("runledger.sessions.cache")


def _to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def session_to_json(session: RunSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "start_time_millis": _to_millis(session.start_time),
        "end_time_millis": _to_millis(session.end_time),
        "distance_meters": session.distance_meters,
        "active_duration_seconds": session.active_duration.total_seconds(),
        "average_pace_seconds_per_km": session.average_pace_seconds_per_km,
        "average_heart_rate_bpm": session.average_heart_rate_bpm,
        "title": session.title,
    }


def session_from_json(data: dict[str, Any]) -> RunSession:
    return RunSession(
        id=str(data["id"]),
        start_time=_from_millis(int(data["start_time_millis"])),
        end_time=_from_millis(int(data["end_time_millis"])),
        distance_meters=float(data["distance_meters"]),
        active_duration=timedelta(seconds=float(data["active_duration_seconds"])),
        average_pace_seconds_per_km=data.get("average_pace_seconds_per_km"),
        average_heart_rate_bpm=data.get("average_heart_rate_bpm"),
        title=data.get("title") or "",
    )


def _newest_first(sessions: Iterable[RunSession]) -> list[RunSession]:
    return sorted(sessions, key=lambda s: s.start_time, reverse=True)


class RunSessionCache(ABC):
    """Keyed store of run summaries."""

    @abstractmethod
    async def all_sessions(self) -> list[RunSession]:
        """Return every cached run, newest start first."""

    @abstractmethod
    def watch(self) -> AsyncIterator[list[RunSession]]:
        """Yield the current listing, then a fresh listing after every change.

        A consumer that falls behind skips straight to the latest listing.
        """

    @abstractmethod
    async def insert_all(self, sessions: Iterable[RunSession]) -> None:
        """Insert or replace runs by id."""

    @abstractmethod
    async def replace_all(self, sessions: Iterable[RunSession]) -> None:
        """Drop every cached run and store ``sessions`` instead."""

    @abstractmethod
    async def latest_end_time(self) -> datetime | None:
        """Latest end time across cached runs, None when empty."""


class JsonFileRunSessionCache(RunSessionCache):
    """``RunSessionCache`` persisted as one JSON document::

        {"sessions": [{"id": ..., "start_time_millis": ..., ...}, ...]}

    A missing or corrupt file reads as an empty cache.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()
        self._watchers: set[asyncio.Queue] = set()

    async def all_sessions(self) -> list[RunSession]:
        return _newest_first((await asyncio.to_thread(self._read)).values())

    async def watch(self) -> AsyncIterator[list[RunSession]]:
        queue: asyncio.Queue[list[RunSession]] = asyncio.Queue(maxsize=1)
        self._watchers.add(queue)
        try:
            yield await self.all_sessions()
            while True:
                yield await queue.get()
        finally:
            self._watchers.discard(queue)

    async def insert_all(self, sessions: Iterable[RunSession]) -> None:
        incoming = list(sessions)
        async with self._lock:
            cached = await asyncio.to_thread(self._read)
            for session in incoming:
                cached[session.id] = session
            await asyncio.to_thread(self._write, cached)
        logger.debug("Cached %d runs (%d total)", len(incoming), len(cached))
        self._notify(cached)

    async def replace_all(self, sessions: Iterable[RunSession]) -> None:
        cached = {session.id: session for session in sessions}
        async with self._lock:
            await asyncio.to_thread(self._write, cached)
        logger.debug("Replaced run cache with %d runs", len(cached))
        self._notify(cached)

    async def latest_end_time(self) -> datetime | None:
        cached = await asyncio.to_thread(self._read)
        return max((s.end_time for s in cached.values()), default=None)

    def _notify(self, cached: dict[str, RunSession]) -> None:
        snapshot = _newest_first(cached.values())
        for queue in self._watchers:
            # a slow watcher only ever holds the newest listing
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)

    def _read(self) -> dict[str, RunSession]:
        raw = read_json(self._path)
        entries = raw.get("sessions") if isinstance(raw, dict) else None
        cached: dict[str, RunSession] = {}
        for data in entries if isinstance(entries, list) else []:
            try:
                session = session_from_json(data)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed cached run: %s", exc)
                continue
            cached[session.id] = session
        return cached

    def _write(self, cached: dict[str, RunSession]) -> None:
        document = {"sessions": [session_to_json(s) for s in _newest_first(cached.values())]}
        write_json_atomic(self._path, document)
