"""Property-based tests for progress model and estimation loop invariants.

These tests verify properties that must hold for every goal, baseline and
sample stream, catching edge cases that example-based tests might miss.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from hypothesis import assume, given, strategies as st

from progpipe.core.calculation import RateConvention, compute_snapshot, truncate
from progpipe.core.estimation import run
from progpipe.types.models import ProgressDirection
from tests.fixtures.sample_generators import DEFAULT_START_EPOCH, ScriptedClock

START = datetime(2024, 1, 1, 0, 0, 0)

values = st.integers(min_value=-1_000_000, max_value=1_000_000).map(Decimal)
elapsed = st.integers(min_value=1, max_value=1_000_000)


@given(goal=values, baseline=values, current=values, seconds=elapsed)
def test_percent_complete_formula(goal: Decimal, baseline: Decimal, current: Decimal, seconds: int) -> None:
    """Percent complete is the truncated share of distance covered."""
    assume(goal != baseline)

    snapshot = compute_snapshot(
        goal=goal, baseline=baseline, current_value=current, elapsed_seconds=seconds, start_time=START
    )

    assert snapshot.percent_complete == truncate(abs(current - baseline) * 100 / abs(goal - baseline))
    assert snapshot.percent_complete >= 0


@given(
    goal=values,
    baseline=values,
    current=values,
    seconds=elapsed,
    convention=st.sampled_from(RateConvention),
)
def test_seconds_remaining_defined_iff_rate_positive(
    goal: Decimal, baseline: Decimal, current: Decimal, seconds: int, convention: RateConvention
) -> None:
    """A finite ETC exists exactly when the average rate is positive."""
    assume(goal != baseline)

    snapshot = compute_snapshot(
        goal=goal,
        baseline=baseline,
        current_value=current,
        elapsed_seconds=seconds,
        start_time=START,
        convention=convention,
    )

    if snapshot.average_rate > 0:
        assert snapshot.seconds_remaining is not None
        assert snapshot.seconds_remaining >= 0
        assert snapshot.direction is ProgressDirection.PROGRESSING
    else:
        assert snapshot.seconds_remaining is None
        assert snapshot.eta_timestamp is None
        assert snapshot.is_infinite


@given(goal=values, baseline=values, current=values, seconds=elapsed)
def test_eta_projects_from_sample_time(goal: Decimal, baseline: Decimal, current: Decimal, seconds: int) -> None:
    """The ETC timestamp is the sample time plus the seconds remaining."""
    snapshot = compute_snapshot(
        goal=goal, baseline=baseline, current_value=current, elapsed_seconds=seconds, start_time=START
    )

    if snapshot.eta_timestamp is not None:
        assert snapshot.seconds_remaining is not None
        assert snapshot.eta_timestamp == START + timedelta(seconds=seconds + snapshot.seconds_remaining)


@given(goal=values, baseline=values, seconds=elapsed)
def test_degenerate_goal_is_complete(goal: Decimal, baseline: Decimal, seconds: int) -> None:
    """When the goal equals the baseline the run is complete whatever the current value."""
    snapshot = compute_snapshot(
        goal=baseline, baseline=baseline, current_value=goal, elapsed_seconds=seconds, start_time=START
    )

    assert snapshot.percent_complete == Decimal("100.0000")
    assert snapshot.seconds_remaining == 0
    assert snapshot.direction is ProgressDirection.COMPLETE


@given(
    goal=values,
    samples=st.lists(values, min_size=1, max_size=30),
    steps=st.lists(st.floats(min_value=0, max_value=5, allow_nan=False), min_size=30, max_size=30),
)
def test_loop_invariants(goal: Decimal, samples: list[Decimal], steps: list[float]) -> None:
    """Baseline is fixed, elapsed never decreases, and gated samples emit nothing."""
    timestamps: list[float] = []
    now = DEFAULT_START_EPOCH
    for step in steps[: len(samples)]:
        now += step
        timestamps.append(now)

    clock = ScriptedClock([DEFAULT_START_EPOCH, *timestamps])
    snapshots = list(run(goal, samples, clock=clock))

    eligible = [t for t in timestamps[1:] if int(t) - int(DEFAULT_START_EPOCH) > 0]
    assert len(snapshots) == len(eligible)
    assert all(s.baseline == samples[0] for s in snapshots)
    assert all(s.elapsed_seconds > 0 for s in snapshots)
    elapsed_values = [s.elapsed_seconds for s in snapshots]
    assert elapsed_values == sorted(elapsed_values)
    assert [s.current_value for s in snapshots] == samples[len(samples) - len(snapshots):]
