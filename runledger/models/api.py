"""Wire models for the remote run log API.

Field names are the snake_case keys of the JSON contract:

    POST runs/batch   {"runs": [RunUpload, ...]}
                      -> {"data": {"created", "skipped", "results": [...]}}
    GET  runs         ?page=&per_page= -> {"data": [...], "meta", "links"}
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from runledger.models.base import RunLedgerBase

T = TypeVar("T")


# ---------- Pairing payload ----------

class ConnectionPayload(RunLedgerBase):
    """Credentials handed over by the server's pairing screen (QR code)."""

    token: str = Field(min_length=1)
    base_url: str = Field(min_length=1)


# ---------- Requests ----------

class HeartRateSampleUpload(RunLedgerBase):
    timestamp: str
    bpm: int


class PaceSplitUpload(RunLedgerBase):
    kilometer_number: int = Field(ge=1)
    split_time_seconds: int
    pace_seconds_per_km: int
    is_partial: bool
    partial_distance_km: float | None = None  # only sent for the partial split


class RunUpload(RunLedgerBase):
    start_time: str
    end_time: str
    distance_km: float
    duration_seconds: int
    steps: int | None = None
    avg_heart_rate: int | None = None
    avg_pace_seconds_per_km: int | None = None
    heart_rate_samples: list[HeartRateSampleUpload] | None = None
    pace_splits: list[PaceSplitUpload] | None = None


class BatchRunRequest(RunLedgerBase):
    runs: list[RunUpload]

    def to_json_body(self) -> dict[str, Any]:
        """JSON body with absent optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------- Responses ----------

class ApiResponse(BaseModel, Generic[T]):
    data: T


class BatchResultItem(RunLedgerBase):
    index: int
    status: str
    id: int | None = None
    already_synced: bool | None = None


class BatchRunResponseData(RunLedgerBase):
    created: int = 0
    skipped: int = 0
    results: list[BatchResultItem] = Field(default_factory=list)


class RunResponse(RunLedgerBase):
    id: int
    start_time: str
    end_time: str | None = None
    distance_km: float
    duration_seconds: int | None = None
    steps: int | None = None
    avg_heart_rate: int | None = None
    avg_pace_seconds_per_km: int | None = None
    created_at: str | None = None
    already_synced: bool | None = None


class PaginationMeta(RunLedgerBase):
    current_page: int
    last_page: int
    per_page: int
    total: int


class PaginationLinks(RunLedgerBase):
    first: str | None = None
    last: str | None = None
    prev: str | None = None
    next: str | None = None


class PaginatedResponse(BaseModel, Generic[T]):
    data: T
    meta: PaginationMeta | None = None
    links: PaginationLinks | None = None


class ApiErrorResponse(RunLedgerBase):
    message: str
    errors: dict[str, list[str]] | None = None
