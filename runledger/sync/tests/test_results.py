"""Tests for sync result variants and the scheduler verdict mapping."""

from __future__ import annotations

import pytest

from runledger.sync.results import (
    Error,
    NotConnected,
    Outcome,
    Success,
    SyncResult,
    Unauthorized,
    describe,
    scheduler_outcome,
)


class TestSchedulerOutcome:
    @pytest.mark.parametrize(
        "result,expected",
        [
            (Success(synced=2, total=3), Outcome.SUCCESS),
            (NotConnected(), Outcome.SUCCESS),
            (Unauthorized(), Outcome.FAILURE),
            (Error("Server returned 500"), Outcome.RETRY),
            (Error("Validation error from server", retryable=False), Outcome.FAILURE),
        ],
    )
    def test_every_variant_is_mapped(self, result: SyncResult, expected: Outcome) -> None:
        assert scheduler_outcome(result) is expected

    def test_unknown_variant_raises(self) -> None:
        class Mystery(SyncResult):
            pass

        with pytest.raises(TypeError):
            scheduler_outcome(Mystery())

    def test_outcome_values(self) -> None:
        assert [o.value for o in Outcome] == ["success", "failure", "retry"]


class TestDescribe:
    def test_descriptions(self) -> None:
        assert describe(Success(synced=1, total=4)) == "synced 1 of 4"
        assert describe(NotConnected()) == "not connected"
        assert describe(Unauthorized()) == "unauthorized"
        assert describe(Error("boom")) == "error: boom"

    def test_unknown_variant_raises(self) -> None:
        with pytest.raises(TypeError):
            describe(object())


def test_variants_are_values() -> None:
    assert Success(synced=1, total=1) == Success(synced=1, total=1)
    assert Error("a") != Error("b")
    assert NotConnected() == NotConnected()
