"""Background sync scheduler.

Two kinds of work, both running a full pass (load runs from telemetry, then
``SyncRepository.sync_sessions``):

    periodic   every ``periodic_interval_seconds`` (default hourly); scheduling
               it again while it is active keeps the existing loop
    one-time   a single pass as soon as the network is up; scheduling it again
               replaces any pass still waiting or running

Each pass result is mapped through ``scheduler_outcome``: ``retry`` backs off
exponentially (30 s, doubling, capped) up to ``max_retries`` times, while
``success`` and ``failure`` end the pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from runledger.config_loader import SchedulerConfig, get_sync_config
from runledger.models.base import utc_now
from runledger.sessions.source import TelemetrySource
from runledger.sync.repository import SyncRepository
from runledger.sync.results import Error, Outcome, SyncResult, describe, scheduler_outcome

logger = logging.getLogger("runledger.sync.scheduler")

ConnectivityCheck = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]

PERIODIC = "periodic"
ONE_TIME = "one_time"


async def _always_connected() -> bool:
    return True


@dataclass
class PassReport:
    """Outcome of one scheduled pass, retries included.

    Attributes:
        kind:        ``periodic`` or ``one_time``.
        result:      Result of the final attempt.
        outcome:     Scheduler verdict for that result.
        attempts:    Number of attempts made (1 = no retries).
        finished_at: UTC time the pass ended.
    """

    kind: str
    result: SyncResult
    outcome: Outcome
    attempts: int = 1
    finished_at: datetime = field(default_factory=utc_now)


class SyncScheduler:
    """Run sync passes in the background on asyncio tasks.

    Usage::

        scheduler = SyncScheduler(telemetry, sync_repository)
        scheduler.schedule_periodic()
        scheduler.enqueue_one_time()
        ...
        await scheduler.cancel_all()
    """

    def __init__(
        self,
        telemetry: TelemetrySource,
        repository: SyncRepository,
        config: SchedulerConfig | None = None,
        connectivity_check: ConnectivityCheck | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the scheduler.

        Args:
            telemetry:          Source of the runs offered to each pass.
            repository:         Performs the upload.
            config:             Interval and backoff policy.  Defaults to sync_config.yaml.
            connectivity_check: Async callable returning True when the network
                                is usable.  Passes wait until it does.
            sleep:              Awaitable sleep, replaceable in tests.
        """
        self._telemetry = telemetry
        self._repository = repository
        self._config = config or get_sync_config().scheduler
        self._is_connected = connectivity_check or _always_connected
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task] = {}
        self.last_report: PassReport | None = None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def is_scheduled(self, kind: str) -> bool:
        task = self._tasks.get(kind)
        return task is not None and not task.done()

    def schedule_periodic(self) -> asyncio.Task:
        """Start the periodic loop unless it is already running.

        The first pass runs one interval from now; pair with
        ``enqueue_one_time`` for an immediate pass.
        """
        if self.is_scheduled(PERIODIC):
            return self._tasks[PERIODIC]
        task = asyncio.create_task(self._periodic_loop(), name="runledger-periodic-sync")
        self._tasks[PERIODIC] = task
        logger.info(
            "Scheduled periodic sync every %.0f s", self._config.periodic_interval_seconds
        )
        return task

    def enqueue_one_time(self) -> asyncio.Task:
        """Start a one-time pass, replacing any pending one."""
        previous = self._tasks.get(ONE_TIME)
        if previous is not None and not previous.done():
            previous.cancel()
            logger.debug("Replaced pending one-time sync")
        task = asyncio.create_task(self.run_pass(ONE_TIME), name="runledger-one-time-sync")
        self._tasks[ONE_TIME] = task
        return task

    async def cancel_all(self) -> None:
        """Cancel the periodic loop and any one-time pass, and wait for them."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Cancelled %d scheduled sync tasks", len(tasks))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _periodic_loop(self) -> None:
        while True:
            await self._sleep(self._config.periodic_interval_seconds)
            await self.run_pass(PERIODIC)

    async def run_pass(self, kind: str = ONE_TIME) -> PassReport:
        """Run one pass with network gating and backoff on ``retry`` verdicts."""
        attempt = 1
        while True:
            await self._wait_for_network()
            result = await self._attempt()
            outcome = scheduler_outcome(result)

            if outcome is not Outcome.RETRY or attempt > self._config.max_retries:
                report = PassReport(kind=kind, result=result, outcome=outcome, attempts=attempt)
                self.last_report = report
                logger.info(
                    "%s sync finished after %d attempt(s): %s",
                    kind, attempt, describe(result),
                )
                return report

            delay = self._config.backoff_delay(attempt)
            logger.warning(
                "%s sync attempt %d failed (%s); retrying in %.0f s",
                kind, attempt, describe(result), delay,
            )
            await self._sleep(delay)
            attempt += 1

    async def _attempt(self) -> SyncResult:
        try:
            sessions = await self._telemetry.load_run_sessions()
        except Exception as exc:
            logger.warning("Could not load runs for sync: %s", exc)
            return Error(str(exc) or "Could not load runs")
        return await self._repository.sync_sessions(sessions)

    async def _wait_for_network(self) -> None:
        while not await self._is_connected():
            logger.debug("No network; waiting %.0f s", self._config.backoff_initial_seconds)
            await self._sleep(self._config.backoff_initial_seconds)
