"""Unit tests for the estimation loop state machine.

Tests cover:
- Baseline capture from the first sample only
- Gating while no whole second has elapsed
- One snapshot per eligible sample, none forced at stream end
- Elapsed time measured in whole epoch seconds and never decreasing
- Error propagation from the sample source
- Single-use semantics
"""

import logging
from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal

import pytest

from progpipe.core.calculation import RateConvention
from progpipe.core.estimation import EstimationLoop, LoopState, run
from progpipe.core.exceptions import InvalidSampleError
from progpipe.core.source import read_samples
from progpipe.types.models import ProgressDirection
from tests.fixtures.sample_generators import (
    DEFAULT_START_EPOCH,
    CountDownPattern,
    CountUpPattern,
    ScriptedClock,
    StallPattern,
    scripted_run,
    timed,
)


class TestBaselineCapture:
    """Test that the first sample, and only the first, becomes the baseline."""

    def test_first_sample_sets_baseline_without_snapshot(self) -> None:
        """First sample moves the loop to GATED and emits nothing."""
        loop = EstimationLoop(Decimal(100), clock=ScriptedClock([DEFAULT_START_EPOCH, DEFAULT_START_EPOCH]))

        assert loop.loop_state is LoopState.AWAITING_BASELINE
        assert loop.process(Decimal(10)) is None
        assert loop.loop_state is LoopState.GATED
        assert loop.progress_state.baseline == Decimal(10)

    def test_transitions_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Each state change is logged with the previous and new state."""
        clock, values = scripted_run(timed([10, 20], [0, 1]))

        with caplog.at_level(logging.INFO, logger="progpipe.core.estimation"):
            _ = list(run(Decimal(100), values, clock=clock))

        transitions = [
            (r.previous_state, r.new_state)  # pyright: ignore[reportAttributeAccessIssue]
            for r in caplog.records
            if hasattr(r, "new_state")
        ]
        assert transitions == [
            ("awaiting_baseline", "gated"),
            ("gated", "running"),
            ("running", "finished"),
        ]

    def test_baseline_never_changes(self) -> None:
        """Later samples update current_value but not baseline."""
        clock, values = scripted_run(timed([10, 20, 30, 40], [0, 1, 2, 3]))
        loop = EstimationLoop(Decimal(100), clock=clock)

        snapshots = list(loop.run(values))

        assert all(s.baseline == Decimal(10) for s in snapshots)
        assert loop.progress_state.baseline == Decimal(10)
        assert loop.progress_state.current_value == Decimal(40)
        assert loop.progress_state.samples_seen == 4

    def test_different_first_sample_gives_different_baseline(self) -> None:
        """Two runs differing only in their first sample have different baselines."""
        clock_a, values_a = scripted_run(timed([10, 20, 30], [0, 1, 2]))
        clock_b, values_b = scripted_run(timed([15, 20, 30], [0, 1, 2]))

        snaps_a = list(run(Decimal(100), values_a, clock=clock_a))
        snaps_b = list(run(Decimal(100), values_b, clock=clock_b))

        assert snaps_a[-1].baseline == Decimal(10)
        assert snaps_b[-1].baseline == Decimal(15)
        assert snaps_a[-1].percent_complete != snaps_b[-1].percent_complete


class TestGating:
    """Test that no snapshot is produced until elapsed time is positive."""

    def test_samples_within_first_second_are_gated(self) -> None:
        """Samples read within the first second produce no snapshot at all."""
        clock, values = scripted_run(timed([10, 11, 12, 13], [0, 0, 0.5, 0.9]))
        loop = EstimationLoop(Decimal(100), clock=clock)

        assert list(loop.run(values)) == []
        assert loop.progress_state.elapsed_seconds == 0
        assert loop.loop_state is LoopState.FINISHED

    def test_first_positive_elapsed_starts_running(self) -> None:
        """The sample that first sees elapsed > 0 produces the first snapshot."""
        clock, values = scripted_run(timed([10, 10, 20], [0, 0, 1]))
        loop = EstimationLoop(Decimal(100), clock=clock)

        assert loop.process(values[0]) is None
        assert loop.process(values[1]) is None
        assert loop.loop_state is LoopState.GATED

        snapshot = loop.process(values[2])

        assert snapshot is not None
        assert loop.loop_state is LoopState.RUNNING
        assert snapshot.elapsed_seconds == 1

    def test_held_samples_are_announced(self) -> None:
        """The on_hold hook fires for the baseline and every gated sample, never after."""
        clock, values = scripted_run(timed([10, 11, 12, 20, 30], [0, 0, 0.5, 1, 2]))
        loop = EstimationLoop(Decimal(100), clock=clock)
        held: list[int] = []

        snapshots = list(loop.run(values, on_hold=lambda: held.append(loop.progress_state.samples_seen)))

        assert held == [1, 2, 3]
        assert len(snapshots) == 2

    def test_whole_second_boundaries(self) -> None:
        """Elapsed time counts epoch-second boundaries crossed, like EPOCHSECONDS."""
        start = 1000.9
        clock = ScriptedClock([start, 1000.95, 1001.05])
        loop = EstimationLoop(Decimal(100), clock=clock)

        assert loop.process(Decimal(10)) is None
        snapshot = loop.process(Decimal(20))

        assert snapshot is not None
        assert snapshot.elapsed_seconds == 1

    def test_elapsed_never_decreases(self) -> None:
        """A clock stepping backwards does not reduce elapsed time."""
        clock, values = scripted_run(timed([10, 20, 30], [0, 5, 3]))
        snapshots = list(run(Decimal(100), values, clock=clock))

        assert [s.elapsed_seconds for s in snapshots] == [5, 5]


class TestRunning:
    """Test snapshots produced while RUNNING."""

    def test_counting_up_scenario(self) -> None:
        """goal=100, samples [10, 20, 30] at [0, 1, 2] seconds."""
        clock, values = scripted_run(timed([10, 20, 30], [0, 1, 2]))
        snapshots = list(run(Decimal(100), values, clock=clock))

        assert len(snapshots) == 2
        first, second = snapshots
        assert str(first.percent_complete) == "11.1111"
        assert str(first.average_rate) == "10.0000"
        assert str(second.percent_complete) == "22.2222"
        assert str(second.average_rate) == "10.0000"
        assert second.seconds_remaining == 7

    def test_counting_down_until_stall(self) -> None:
        """goal=0: decrementing samples, then a value stuck at the baseline is infinite."""
        clock, values = scripted_run(timed([50, 40, 50], [0, 1, 2]))
        snapshots = list(run(Decimal(0), values, clock=clock))

        assert snapshots[0].seconds_remaining == 4
        assert snapshots[1].average_rate == 0
        assert snapshots[1].is_infinite
        assert snapshots[1].direction is ProgressDirection.STALLED

    def test_repeated_value_decays_average_rate(self) -> None:
        """goal=0, samples [50, 40, 40]: the rate is averaged since start, not per sample."""
        clock, values = scripted_run(timed([50, 40, 40], [0, 1, 2]))
        snapshots = list(run(Decimal(0), values, clock=clock))

        assert str(snapshots[0].average_rate) == "10.0000"
        assert str(snapshots[1].average_rate) == "5.0000"
        assert snapshots[1].seconds_remaining == 8

    def test_stalled_stream_is_always_infinite(self) -> None:
        """A stream that never moves never produces a finite ETC."""
        clock, values = scripted_run(list(StallPattern(start=42, count=5).generate()))
        snapshots = list(run(Decimal(100), values, clock=clock))

        assert len(snapshots) == 4
        assert all(s.is_infinite for s in snapshots)

    def test_degenerate_goal(self) -> None:
        """goal equal to the baseline reports completion, not an error."""
        clock, values = scripted_run(timed([10, 10], [0, 1]))
        snapshots = list(run(Decimal(10), values, clock=clock))

        assert len(snapshots) == 1
        assert str(snapshots[0].percent_complete) == "100.0000"
        assert snapshots[0].direction is ProgressDirection.COMPLETE

    def test_count_up_pattern_reaches_goal(self) -> None:
        """Full count-up run ends at 100% with zero seconds remaining."""
        samples = list(CountUpPattern(11, 101).generate())
        clock, values = scripted_run(samples)
        snapshots = list(run(Decimal(101), values, clock=clock))

        assert len(snapshots) == len(samples) - 1
        assert str(snapshots[-1].percent_complete) == "100.0000"
        assert snapshots[-1].seconds_remaining == 0

    def test_count_down_pattern_reaches_goal(self) -> None:
        """Full count-down run ends at 100% with a constant rate of one per second."""
        samples = list(CountDownPattern(101, 11).generate())
        clock, values = scripted_run(samples)
        snapshots = list(run(Decimal(11), values, clock=clock))

        assert str(snapshots[-1].percent_complete) == "100.0000"
        assert all(str(s.average_rate) == "1.0000" for s in snapshots)

    def test_signed_convention(self) -> None:
        """Moving away from the goal is reported as regression under the signed convention."""
        clock, values = scripted_run(timed([10, 5], [0, 1]))
        snapshots = list(run(Decimal(100), values, clock=clock, convention=RateConvention.SIGNED))

        assert snapshots[0].direction is ProgressDirection.REGRESSING
        assert snapshots[0].is_infinite

    def test_eta_is_sample_time_plus_remaining(self, start_time: datetime) -> None:
        """ETC timestamp projects from the time the sample was read."""
        clock, values = scripted_run(timed([10, 30], [0, 2]))
        snapshot = next(run(Decimal(100), values, clock=clock))

        assert snapshot.seconds_remaining == 7
        assert (snapshot.eta_timestamp - start_time).total_seconds() == 9  # pyright: ignore[reportOptionalOperand]


class TestLifecycle:
    """Test stream end, error propagation and single-use semantics."""

    def test_empty_stream(self) -> None:
        """An empty stream ends silently."""
        loop = EstimationLoop(Decimal(100), clock=ScriptedClock([DEFAULT_START_EPOCH]))

        held: list[None] = []

        assert list(loop.run([], on_hold=lambda: held.append(None))) == []
        assert loop.loop_state is LoopState.FINISHED
        assert loop.progress_state.baseline is None
        assert held == []

    def test_run_is_lazy(self) -> None:
        """Samples are consumed one at a time, only as snapshots are requested."""
        consumed: list[int] = []

        def source() -> Iterator[Decimal]:
            for value, _ in [(10, 0), (20, 1), (30, 2)]:
                consumed.append(value)
                yield Decimal(value)

        clock, _ = scripted_run(timed([10, 20, 30], [0, 1, 2]))
        snapshots = run(Decimal(100), source(), clock=clock)

        assert consumed == []
        _ = next(snapshots)
        assert consumed == [10, 20]

    def test_invalid_sample_propagates(self) -> None:
        """An unparseable line stops the run with an error."""
        clock, _ = scripted_run(timed([10, 20, 30], [0, 1, 2]))
        snapshots = run(Decimal(100), read_samples(["10\n", "20\n", "oops\n"]), clock=clock)

        first = next(snapshots)
        assert first.current_value == Decimal(20)
        with pytest.raises(InvalidSampleError, match="input line 3"):
            _ = next(snapshots)

    def test_not_restartable(self) -> None:
        """A second run() on the same loop is rejected."""
        loop = EstimationLoop(Decimal(100), clock=ScriptedClock([DEFAULT_START_EPOCH]))
        _ = loop.run([])

        with pytest.raises(RuntimeError, match="cannot be restarted"):
            _ = loop.run([])

    def test_process_after_finish_raises(self) -> None:
        """Samples cannot be fed once the stream has ended."""
        loop = EstimationLoop(Decimal(100), clock=ScriptedClock([DEFAULT_START_EPOCH, DEFAULT_START_EPOCH]))
        assert list(loop.run([])) == []

        with pytest.raises(RuntimeError, match="after the loop has finished"):
            _ = loop.process(Decimal(1))
