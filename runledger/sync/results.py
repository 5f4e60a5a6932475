"""Outcomes of a sync pass.

A pass ends in exactly one of four variants.  They are values, not
exceptions: a missing connection or an expired token is a state the caller
shows, not a crash.

    Success(synced, total)  uploaded (or already present) runs / runs offered
    NotConnected            no credentials or no usable API client
    Unauthorized            401, the user must re-pair
    Error(message)          validation failure, server error or network error;
                            ``retryable`` is False for a rejected payload (422)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SyncResult:
    """Base of the closed family of sync outcomes."""

    __slots__ = ()


@dataclass(frozen=True)
class Success(SyncResult):
    synced: int
    total: int


@dataclass(frozen=True)
class NotConnected(SyncResult):
    pass


@dataclass(frozen=True)
class Unauthorized(SyncResult):
    pass


@dataclass(frozen=True)
class Error(SyncResult):
    message: str
    retryable: bool = True


class Outcome(str, Enum):
    """What the background scheduler should do after a pass."""

    SUCCESS = "success"  # done until the next periodic run
    FAILURE = "failure"  # give up; needs user action
    RETRY = "retry"      # back off and try again


def scheduler_outcome(result: SyncResult) -> Outcome:
    """Map a sync result onto the scheduler's retry policy.

    Raises:
        TypeError: For anything that is not one of the four variants.
    """
    if isinstance(result, (Success, NotConnected)):
        return Outcome.SUCCESS
    if isinstance(result, Unauthorized):
        return Outcome.FAILURE
    if isinstance(result, Error):
        return Outcome.RETRY if result.retryable else Outcome.FAILURE
    raise TypeError(f"Unknown sync result: {result!r}")


def describe(result: SyncResult) -> str:
    """Short human-readable summary, used in logs and the local API."""
    if isinstance(result, Success):
        return f"synced {result.synced} of {result.total}"
    if isinstance(result, NotConnected):
        return "not connected"
    if isinstance(result, Unauthorized):
        return "unauthorized"
    if isinstance(result, Error):
        return f"error: {result.message}"
    raise TypeError(f"Unknown sync result: {result!r}")
