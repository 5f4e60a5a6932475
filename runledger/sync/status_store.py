"""Persistent per-run sync state.

One JSON document holds the map ``run id -> SyncRecord`` plus the time of the
last successful batch::

    {"sync_map": {"<run id>": {"state": "SYNCED", "server_id": 7, ...}},
     "last_sync_time": 1718953200000}

Every mark operation is an atomic read-modify-write under an ``asyncio.Lock``
and the file is replaced atomically, so a crash mid-sync leaves the last
complete state on disk.  This store is the single source of truth for
"which runs still need uploading".
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from runledger.storage import read_json, write_json_atomic

logger = logging.getLogger("runledger.sync.status_store")


def _now_millis() -> int:
    return int(time.time() * 1000)


class SyncState(str, Enum):
    PENDING = "PENDING"
    SYNCED = "SYNCED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class SyncRecord:
    """Sync state of one run.

    Attributes:
        state:           PENDING, SYNCED or FAILED.
        server_id:       Id assigned by the run log.  Required when SYNCED.
        last_attempt:    Epoch millis of the last transition (0 = never tried).
        failure_message: Why the last attempt failed, for FAILED records.
    """

    state: SyncState
    server_id: int | None = None
    last_attempt: int = 0
    failure_message: str | None = None

    def __post_init__(self) -> None:
        if self.state is SyncState.SYNCED and self.server_id is None:
            raise ValueError("A SYNCED record must carry a server_id")

    @property
    def needs_sync(self) -> bool:
        return self.state is not SyncState.SYNCED

    def to_json(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "server_id": self.server_id,
            "last_attempt": self.last_attempt,
            "failure_message": self.failure_message,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "SyncRecord":
        server_id = data.get("server_id")
        return cls(
            state=SyncState(data["state"]),
            server_id=int(server_id) if server_id is not None else None,
            last_attempt=int(data.get("last_attempt") or 0),
            failure_message=data.get("failure_message"),
        )


class SyncStatusStore:
    """Run id to SyncRecord map persisted as a JSON file.

    Usage::

        store = SyncStatusStore(Path(".runledger/sync_status.json"))
        await store.mark_pending(["run-1", "run-2"])
        await store.mark_synced("run-1", server_id=42)
        records = await store.sync_map()
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def sync_map(self) -> dict[str, SyncRecord]:
        """Return a snapshot of every known record."""
        records, _ = await asyncio.to_thread(self._read)
        return records

    async def get_record(self, run_id: str) -> SyncRecord | None:
        return (await self.sync_map()).get(run_id)

    async def last_sync_time(self) -> int | None:
        """Epoch millis of the last successful upload, None if never."""
        _, last_sync = await asyncio.to_thread(self._read)
        return last_sync

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def mark_pending(self, run_ids: Iterable[str]) -> None:
        """Insert PENDING records for ids not yet in the map.

        Existing SYNCED or FAILED records are left untouched.
        """
        ids = list(run_ids)
        async with self._lock:
            records, last_sync = await asyncio.to_thread(self._read)
            added = 0
            for run_id in ids:
                if run_id not in records:
                    records[run_id] = SyncRecord(state=SyncState.PENDING)
                    added += 1
            if added:
                await asyncio.to_thread(self._write, records, last_sync)
        logger.debug("Marked %d of %d runs pending", added, len(ids))

    async def mark_synced(self, run_id: str, server_id: int) -> None:
        """Record a successful upload and stamp the last sync time."""
        now = _now_millis()
        async with self._lock:
            records, _ = await asyncio.to_thread(self._read)
            records[run_id] = SyncRecord(
                state=SyncState.SYNCED, server_id=server_id, last_attempt=now
            )
            await asyncio.to_thread(self._write, records, now)

    async def mark_failed(self, run_id: str, message: str) -> None:
        async with self._lock:
            records, last_sync = await asyncio.to_thread(self._read)
            records[run_id] = SyncRecord(
                state=SyncState.FAILED,
                last_attempt=_now_millis(),
                failure_message=message,
            )
            await asyncio.to_thread(self._write, records, last_sync)

    async def clear_all(self) -> None:
        """Forget every record and the last sync time (account disconnect)."""
        async with self._lock:
            await asyncio.to_thread(self._write, {}, None)
        logger.info("Cleared all sync state")

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read(self) -> tuple[dict[str, SyncRecord], int | None]:
        raw = read_json(self._path)
        if not isinstance(raw, dict):
            return {}, None

        stored = raw.get("sync_map")
        records: dict[str, SyncRecord] = {}
        for run_id, data in (stored if isinstance(stored, dict) else {}).items():
            try:
                records[run_id] = SyncRecord.from_json(data)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed sync record for %s: %s", run_id, exc)

        last_sync = raw.get("last_sync_time")
        return records, int(last_sync) if isinstance(last_sync, (int, float)) else None

    def _write(self, records: dict[str, SyncRecord], last_sync: int | None) -> None:
        document: dict[str, Any] = {
            "sync_map": {run_id: record.to_json() for run_id, record in records.items()}
        }
        if last_sync is not None:
            document["last_sync_time"] = last_sync
        write_json_atomic(self._path, document)
