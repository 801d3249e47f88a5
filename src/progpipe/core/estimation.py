"""Estimation loop driving the progress model once per input sample.

The loop owns the running ``ProgressState`` and moves through a small
state machine:

    AWAITING_BASELINE → GATED: first sample captured as the baseline
    GATED → RUNNING: at least one whole second has elapsed
    RUNNING → FINISHED: the sample stream is exhausted

No snapshot is produced while awaiting the baseline or while gated, so the
progress model never divides by a zero elapsed time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from datetime import datetime
from decimal import Decimal
from enum import Enum

from progpipe.core.calculation import RateConvention, compute_snapshot
from progpipe.types.aliases import Clock, SampleStream
from progpipe.types.models import ProgressSnapshot, ProgressState

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Lifecycle states of the estimation loop.

    - AWAITING_BASELINE: no sample received yet
    - GATED: baseline captured, waiting for elapsed time to become positive
    - RUNNING: emitting one snapshot per sample
    - FINISHED: input exhausted
    """

    AWAITING_BASELINE = "awaiting_baseline"
    GATED = "gated"
    RUNNING = "running"
    FINISHED = "finished"


class EstimationLoop:
    """Single-use driver that turns a sample stream into progress snapshots.

    The wall clock is read once at construction to fix the start time and
    once per sample to compute the elapsed time. Elapsed time is counted in
    whole epoch seconds and never decreases, even if the clock steps back.

    Attributes:
        loop_state: Current lifecycle state
        progress_state: Running state shared with the render sink
    """

    def __init__(
        self,
        goal: Decimal,
        *,
        clock: Clock = time.time,
        convention: RateConvention = RateConvention.MAGNITUDE,
    ) -> None:
        """Initialize the loop and capture the start time.

        Args:
            goal: Target value, fixed for the lifetime of the loop
            clock: Source of epoch seconds
            convention: Treatment of movement away from the goal
        """
        self._clock: Clock = clock
        self._convention: RateConvention = convention
        self._start_epoch: int = int(clock())
        self._state: LoopState = LoopState.AWAITING_BASELINE
        self._consumed: bool = False
        self._progress: ProgressState = ProgressState(
            goal=goal,
            start_time=datetime.fromtimestamp(self._start_epoch),
        )
        logger.debug(
            "Estimation loop initialized",
            extra={"goal": str(goal), "convention": convention.value, "state": self._state.value},
        )

    @property
    def loop_state(self) -> LoopState:
        """Get current lifecycle state."""
        return self._state

    @property
    def progress_state(self) -> ProgressState:
        """Get the running progress state."""
        return self._progress

    def _transition(self, new_state: LoopState, message: str) -> None:
        previous_state = self._state
        self._state = new_state
        logger.info(
            message,
            extra={
                "previous_state": previous_state.value,
                "new_state": new_state.value,
                "elapsed_seconds": self._progress.elapsed_seconds,
            },
        )

    def _elapsed_seconds(self) -> int:
        elapsed = int(self._clock()) - self._start_epoch
        return max(self._progress.elapsed_seconds, elapsed)

    def process(self, sample: Decimal) -> ProgressSnapshot | None:
        """Feed one sample through the state machine.

        Args:
            sample: Parsed numeric observation

        Returns:
            The computed snapshot, or None while awaiting the baseline or gated

        Raises:
            RuntimeError: If the loop has already finished
        """
        if self._state is LoopState.FINISHED:
            msg = "Cannot process samples after the loop has finished"
            raise RuntimeError(msg)

        progress = self._progress
        progress.elapsed_seconds = self._elapsed_seconds()
        progress.current_value = sample
        progress.samples_seen += 1

        if self._state is LoopState.AWAITING_BASELINE:
            progress.baseline = sample
            self._transition(LoopState.GATED, f"Baseline captured at {sample}")
            return None

        if self._state is LoopState.GATED:
            if progress.elapsed_seconds <= 0:
                logger.debug(
                    "Sample arrived within the first second, waiting",
                    extra={"sample": str(sample), "samples_seen": progress.samples_seen},
                )
                return None
            self._transition(LoopState.RUNNING, "Estimation running")

        baseline = progress.baseline
        if baseline is None:
            msg = f"Baseline missing in state {self._state.value}"
            raise RuntimeError(msg)

        return compute_snapshot(
            goal=progress.goal,
            baseline=baseline,
            current_value=sample,
            elapsed_seconds=progress.elapsed_seconds,
            start_time=progress.start_time,
            convention=self._convention,
        )

    def run(
        self,
        samples: SampleStream,
        *,
        on_hold: Callable[[], None] | None = None,
    ) -> Iterator[ProgressSnapshot]:
        """Lazily produce one snapshot per eligible sample.

        The loop is not restartable: a second call raises immediately.

        Args:
            samples: Numeric samples in arrival order
            on_hold: Called for each sample held back as the baseline or
                because no whole second has elapsed yet

        Returns:
            Iterator of snapshots, ending silently when samples run out

        Raises:
            RuntimeError: If run() was already called on this loop
        """
        if self._consumed:
            msg = "Estimation loop cannot be restarted"
            raise RuntimeError(msg)
        self._consumed = True
        return self._iterate(samples, on_hold)

    def _iterate(self, samples: SampleStream, on_hold: Callable[[], None] | None) -> Iterator[ProgressSnapshot]:
        for sample in samples:
            snapshot = self.process(sample)
            if snapshot is not None:
                yield snapshot
            elif on_hold is not None:
                on_hold()

        self._transition(LoopState.FINISHED, "Input exhausted")


def run(
    goal: Decimal,
    samples: SampleStream,
    *,
    clock: Clock = time.time,
    convention: RateConvention = RateConvention.MAGNITUDE,
    on_hold: Callable[[], None] | None = None,
) -> Iterator[ProgressSnapshot]:
    """Run a fresh estimation loop over a sample stream.

    Examples:
        >>> ticks = iter([0, 0, 1, 2])
        >>> snaps = list(run(Decimal(100), [Decimal(10), Decimal(20), Decimal(30)], clock=lambda: next(ticks)))
        >>> [str(s.percent_complete) for s in snaps]
        ['11.1111', '22.2222']
    """
    return EstimationLoop(goal, clock=clock, convention=convention).run(samples, on_hold=on_hold)
