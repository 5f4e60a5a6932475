"""Refresh policy for the run cache.

    refresh_incremental  load only runs ending after the newest cached run;
                         an empty cache falls back to a full refresh
    refresh_full         reload everything and replace the cache

Either refresh then hands the cached listing to the sync callback on a
background task.  The refresh itself never waits for, or fails because of,
the sync.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from runledger.metrics.base import RunSession
from runledger.sessions.cache import RunSessionCache
from runledger.sessions.source import TelemetrySource
from runledger.sync.status_store import SyncRecord, SyncStatusStore

logger = logging.getLogger("runledger.sessions.repository")

SyncCallback = Callable[[Sequence[RunSession]], Awaitable[object]]


class RunSessionRepository:
    """Keeps the run cache in step with telemetry.

    Args:
        cache:         Local run cache.
        telemetry:     Source of recorded runs.
        sync_callback: Optional async callable given the cached runs after
                       each refresh, typically ``SyncRepository.sync_sessions``.
    """

    def __init__(
        self,
        cache: RunSessionCache,
        telemetry: TelemetrySource,
        sync_callback: SyncCallback | None = None,
    ) -> None:
        self._cache = cache
        self._telemetry = telemetry
        self._sync_callback = sync_callback
        self._background: set[asyncio.Task] = set()

    async def sessions(self) -> list[RunSession]:
        return await self._cache.all_sessions()

    async def refresh_incremental(self) -> int:
        """Cache runs newer than the latest cached one.

        Returns:
            Number of runs loaded from telemetry.
        """
        latest = await self._cache.latest_end_time()
        if latest is None:
            return await self.refresh_full()

        new_sessions = await self._telemetry.load_run_sessions_after(latest)
        if new_sessions:
            await self._cache.insert_all(new_sessions)
        logger.info("Incremental refresh: %d new runs after %s", len(new_sessions), latest)
        await self._after_refresh()
        return len(new_sessions)

    async def refresh_full(self) -> int:
        """Replace the cache with every run from telemetry.

        Returns:
            Number of runs now cached.
        """
        sessions = await self._telemetry.load_run_sessions()
        await self._cache.replace_all(sessions)
        logger.info("Full refresh: %d runs cached", len(sessions))
        await self._after_refresh()
        return len(sessions)

    async def runs_with_status(
        self, status_store: SyncStatusStore
    ) -> list[tuple[RunSession, SyncRecord | None]]:
        """Pair every cached run with its sync record (None = never attempted)."""
        sessions, sync_map = await asyncio.gather(
            self._cache.all_sessions(), status_store.sync_map()
        )
        return [(session, sync_map.get(session.id)) for session in sessions]

    async def wait_for_background(self) -> None:
        """Wait for sync tasks started by earlier refreshes."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def cancel_background(self) -> None:
        """Cancel sync tasks started by earlier refreshes and wait for them to stop."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d background sync tasks", len(tasks))

    async def _after_refresh(self) -> None:
        if self._sync_callback is None:
            return
        sessions = await self._cache.all_sessions()
        task = asyncio.create_task(self._run_sync(sessions))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_sync(self, sessions: list[RunSession]) -> None:
        try:
            result = await self._sync_callback(sessions)
        except Exception:
            logger.exception("Background sync after refresh failed")
            return
        logger.debug("Background sync after refresh: %s", result)
