"""Data models for progpipe.

This module defines the dataclasses passed between the estimation loop,
the progress model and the render sink.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class ProgressDirection(Enum):
    """Classification of the tracked quantity at a given snapshot.

    - PROGRESSING: moving toward the goal at a positive rate
    - STALLED: no movement since the baseline, ETC is infinite
    - REGRESSING: moving away from the goal (signed rate convention only)
    - COMPLETE: goal equals baseline, nothing left to do
    """

    PROGRESSING = "progressing"
    STALLED = "stalled"
    REGRESSING = "regressing"
    COMPLETE = "complete"


@dataclass(slots=True)
class ProgressState:
    """Mutable running state owned by the estimation loop.

    Created once at startup and updated on every sample. The baseline is
    written exactly once, from the first sample received.
    """

    goal: Decimal
    start_time: datetime
    baseline: Decimal | None = None
    current_value: Decimal | None = None
    elapsed_seconds: int = 0
    samples_seen: int = 0


@dataclass(slots=True, frozen=True)
class ProgressSnapshot:
    """Immutable set of derived progress metrics for one input sample.

    A ``seconds_remaining`` or ``eta_timestamp`` of ``None`` is the
    "infinite" sentinel: the rate is not positive so completion is undefined.
    """

    goal: Decimal
    baseline: Decimal
    current_value: Decimal
    elapsed_seconds: int
    total_work: Decimal
    remaining_work: Decimal
    progress_delta: Decimal
    average_rate: Decimal
    percent_complete: Decimal
    seconds_remaining: int | None
    eta_timestamp: datetime | None
    direction: ProgressDirection

    @property
    def is_infinite(self) -> bool:
        """Whether the ETC is undefined for this snapshot."""
        return self.seconds_remaining is None


@dataclass(slots=True, frozen=True)
class DurationBreakdown:
    """Remaining time expressed in each unit separately (not cumulative).

    Each coarser unit is derived from the next finer one with truncating
    division, so ``49`` seconds reads as 0.8166 minutes, 0.0136 hours and
    0.0005 days.
    """

    days: Decimal
    hours: Decimal
    minutes: Decimal
    seconds: int
