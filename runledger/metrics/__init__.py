"""RunLedger metrics engine.

Pure functions over in-memory sample sequences: no I/O, no state.

Modules:
    base   — Run, sample and split dataclasses
    pace   — Speed to pace conversion and average pace
    splits — Calibrated per-kilometre split computation
    stats  — Display formatting and run titles
"""

from runledger.metrics.base import (
    HeartRateSample,
    PaceSample,
    PaceSplit,
    RunDetail,
    RunSession,
    SpeedSample,
    TimeOfDay,
)
from runledger.metrics.pace import average_pace, speed_to_pace, to_pace_samples
from runledger.metrics.splits import compute_splits

__all__ = [
    "HeartRateSample",
    "PaceSample",
    "PaceSplit",
    "RunDetail",
    "RunSession",
    "SpeedSample",
    "TimeOfDay",
    "average_pace",
    "compute_splits",
    "speed_to_pace",
    "to_pace_samples",
]
