"""Pure calculation functions for progress tracking and ETC estimation.

This module provides stateless, side-effect-free functions for calculating:
- Total, remaining and completed work relative to a baseline
- Average rate of change since the start of the run
- Percentage complete
- Seconds remaining and the projected completion timestamp
- A per-unit breakdown of the remaining time

All arithmetic is done on ``Decimal`` values and every division is
truncated (not rounded) to ``PRECISION`` fractional digits, so results are
reproducible and never suffer binary floating point drift. Each operation
runs in a context sized to its operands, so arbitrarily large or small
samples are handled exactly.
"""

from datetime import datetime, timedelta
from decimal import MAX_EMAX, MIN_EMIN, ROUND_DOWN, Context, Decimal
from enum import Enum
from typing import Final

from progpipe.types.models import (
    DurationBreakdown,
    ProgressDirection,
    ProgressSnapshot,
)

# Fractional digits kept after every division
PRECISION: Final[int] = 4

_QUANTUM: Final[Decimal] = Decimal(1).scaleb(-PRECISION)

# Smallest working precision, in significant digits
_MIN_DIGITS: Final[int] = 28

_ZERO: Final[Decimal] = Decimal(0)
_HUNDRED: Final[Decimal] = Decimal(100)

# Largest span timedelta can represent, in seconds
_MAX_SECONDS: Final[int] = 999_999_999 * 86400


class RateConvention(Enum):
    """How the sign of movement relative to the goal is treated.

    - MAGNITUDE: every distance is absolute, so any movement counts as
      progress toward the goal. This is the classic behaviour.
    - SIGNED: movement away from the goal yields a negative rate, which is
      reported as REGRESSING with an infinite ETC.
    """

    MAGNITUDE = "magnitude"
    SIGNED = "signed"


def truncate(value: Decimal, places: int = PRECISION) -> Decimal:
    """Truncate a decimal toward zero to a fixed number of fractional digits.

    Examples:
        >>> truncate(Decimal("11.111111"))
        Decimal('11.1111')
        >>> truncate(Decimal("-0.99999"))
        Decimal('-0.9999')
        >>> truncate(Decimal("10"))
        Decimal('10.0000')
    """
    quantum = _QUANTUM if places == PRECISION else Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_DOWN, context=_context(max(value.adjusted(), 0) + places + 2))


def _context(digits: int) -> Context:
    """Build a truncating context holding at least ``digits`` significant digits."""
    return Context(prec=max(digits, _MIN_DIGITS), rounding=ROUND_DOWN, Emax=MAX_EMAX, Emin=MIN_EMIN)


def _span(*values: Decimal) -> int:
    # Digits from the most significant to the least significant place of any value, plus a carry
    top = max(v.adjusted() for v in values)
    bottom = min(int(v.as_tuple().exponent) for v in values)
    return top - bottom + 2


def _subtract(a: Decimal, b: Decimal) -> Decimal:
    """Exact ``a - b``, however far apart the magnitudes of the operands."""
    return _context(_span(a, b)).subtract(a, b)


def _multiply(a: Decimal, b: Decimal) -> Decimal:
    """Exact ``a * b``."""
    return _context(len(a.as_tuple().digits) + len(b.as_tuple().digits) + 1).multiply(a, b)


def _divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    # Enough digits for the whole integer part of the quotient plus the kept fraction
    digits = max(numerator.adjusted() - denominator.adjusted() + 2, 0) + PRECISION + 2
    return truncate(_context(digits).divide(numerator, denominator))


def _orient(value: Decimal, *, goal: Decimal, baseline: Decimal) -> Decimal:
    """Flip the sign of a distance when counting down toward the goal."""
    return value.copy_negate() if goal < baseline else value


def calculate_total_work(*, goal: Decimal, baseline: Decimal) -> Decimal:
    """Calculate the distance between the baseline and the goal.

    Examples:
        >>> calculate_total_work(goal=Decimal(100), baseline=Decimal(10))
        Decimal('90')
        >>> calculate_total_work(goal=Decimal(0), baseline=Decimal(50))
        Decimal('50')
    """
    return _subtract(goal, baseline).copy_abs()


def calculate_remaining_work(
    *,
    goal: Decimal,
    baseline: Decimal,
    current: Decimal,
    convention: RateConvention = RateConvention.MAGNITUDE,
) -> Decimal:
    """Calculate the distance still to cover between the current value and the goal.

    Under the signed convention an overshoot of the goal counts as zero
    remaining work; under the magnitude convention the distance is always
    absolute.

    Examples:
        >>> calculate_remaining_work(goal=Decimal(100), baseline=Decimal(10), current=Decimal(30))
        Decimal('70')
        >>> calculate_remaining_work(goal=Decimal(0), baseline=Decimal(50), current=Decimal(40))
        Decimal('40')
    """
    if convention is RateConvention.MAGNITUDE:
        return _subtract(goal, current).copy_abs()

    signed = _orient(_subtract(goal, current), goal=goal, baseline=baseline)
    return max(_ZERO, signed)


def calculate_progress_delta(
    *,
    goal: Decimal,
    baseline: Decimal,
    current: Decimal,
    convention: RateConvention = RateConvention.MAGNITUDE,
) -> Decimal:
    """Calculate how far the tracked value has moved since the baseline.

    Edge cases:
        - MAGNITUDE: always non-negative, direction is ignored
        - SIGNED: negative when the value moved away from the goal

    Examples:
        >>> calculate_progress_delta(goal=Decimal(0), baseline=Decimal(50), current=Decimal(40))
        Decimal('10')
        >>> calculate_progress_delta(
        ...     goal=Decimal(100), baseline=Decimal(10), current=Decimal(5),
        ...     convention=RateConvention.SIGNED,
        ... )
        Decimal('-5')
    """
    if convention is RateConvention.MAGNITUDE:
        return _subtract(current, baseline).copy_abs()

    return _orient(_subtract(current, baseline), goal=goal, baseline=baseline)


def calculate_average_rate(*, progress_delta: Decimal, elapsed_seconds: int) -> Decimal:
    """Calculate the average rate of change per second since the start of the run.

    The rate is measured over the whole run rather than between consecutive
    samples, which smooths noisy single-sample deltas at the cost of
    imprecise early estimates.

    Raises:
        ValueError: If elapsed_seconds is not positive

    Examples:
        >>> calculate_average_rate(progress_delta=Decimal(20), elapsed_seconds=2)
        Decimal('10.0000')
        >>> calculate_average_rate(progress_delta=Decimal(10), elapsed_seconds=3)
        Decimal('3.3333')
    """
    if elapsed_seconds <= 0:
        msg = f"elapsed_seconds must be positive, got: {elapsed_seconds}"
        raise ValueError(msg)

    return _divide(progress_delta, Decimal(elapsed_seconds))


def calculate_percent_complete(*, progress_delta: Decimal, total_work: Decimal) -> Decimal:
    """Calculate the percentage of the total work already done.

    Edge cases:
        - If total_work is 0 (goal equals baseline), returns 100.0000
        - Values outside 0-100 are returned as-is (overshoot or regression)

    Examples:
        >>> calculate_percent_complete(progress_delta=Decimal(10), total_work=Decimal(90))
        Decimal('11.1111')
        >>> calculate_percent_complete(progress_delta=Decimal(0), total_work=Decimal(0))
        Decimal('100.0000')
    """
    if total_work == 0:
        return truncate(_HUNDRED)

    return _divide(_multiply(progress_delta, _HUNDRED), total_work)


def calculate_seconds_remaining(*, remaining_work: Decimal, average_rate: Decimal) -> int | None:
    """Calculate whole seconds until the goal is reached at the average rate.

    Returns:
        Truncated seconds remaining, or None ("infinite") when the rate is
        zero or negative and completion cannot be projected

    Examples:
        >>> calculate_seconds_remaining(remaining_work=Decimal(70), average_rate=Decimal(10))
        7
        >>> calculate_seconds_remaining(remaining_work=Decimal(5), average_rate=Decimal(0)) is None
        True
    """
    if average_rate <= 0:
        return None

    return int(_divide(remaining_work, average_rate))


def calculate_eta(
    *,
    start_time: datetime,
    elapsed_seconds: int,
    seconds_remaining: int | None,
) -> datetime | None:
    """Project the wall-clock completion time.

    The projection starts from the time of the current sample
    (``start_time + elapsed_seconds``) and adds the remaining seconds.

    Returns:
        Estimated completion datetime, or None if the ETC is infinite or
        too far in the future to represent

    Examples:
        >>> calculate_eta(start_time=datetime(2024, 1, 1, 12, 0, 0), elapsed_seconds=2, seconds_remaining=7)
        datetime.datetime(2024, 1, 1, 12, 0, 9)
    """
    if seconds_remaining is None:
        return None

    total_seconds = elapsed_seconds + seconds_remaining
    if not 0 <= total_seconds < _MAX_SECONDS:
        return None

    try:
        return start_time + timedelta(seconds=total_seconds)
    except OverflowError:
        return None


def classify_direction(*, total_work: Decimal, average_rate: Decimal) -> ProgressDirection:
    """Classify a snapshot from its total work and average rate."""
    if total_work == 0:
        return ProgressDirection.COMPLETE
    if average_rate > 0:
        return ProgressDirection.PROGRESSING
    if average_rate < 0:
        return ProgressDirection.REGRESSING
    return ProgressDirection.STALLED


def compute_snapshot(
    *,
    goal: Decimal,
    baseline: Decimal,
    current_value: Decimal,
    elapsed_seconds: int,
    start_time: datetime,
    convention: RateConvention = RateConvention.MAGNITUDE,
) -> ProgressSnapshot:
    """Compute every derived progress metric for one sample.

    This is the progress model: a pure function of its arguments with no
    hidden state, so identical inputs always give identical snapshots.

    Args:
        goal: Target value
        baseline: First observed sample
        current_value: Latest observed sample
        elapsed_seconds: Whole seconds since the start of the run (must be > 0)
        start_time: Wall-clock time the run started
        convention: Treatment of movement away from the goal

    Returns:
        ProgressSnapshot with all calculated metrics

    Raises:
        ValueError: If elapsed_seconds is not positive

    Edge cases:
        - goal == baseline: 100% complete, zero seconds remaining
        - rate <= 0: seconds_remaining and eta_timestamp are None

    Examples:
        >>> snap = compute_snapshot(
        ...     goal=Decimal(100), baseline=Decimal(10), current_value=Decimal(30),
        ...     elapsed_seconds=2, start_time=datetime(2024, 1, 1),
        ... )
        >>> snap.percent_complete, snap.average_rate, snap.seconds_remaining
        (Decimal('22.2222'), Decimal('10.0000'), 7)
    """
    total_work = calculate_total_work(goal=goal, baseline=baseline)
    progress_delta = calculate_progress_delta(
        goal=goal, baseline=baseline, current=current_value, convention=convention
    )
    average_rate = calculate_average_rate(progress_delta=progress_delta, elapsed_seconds=elapsed_seconds)
    percent_complete = calculate_percent_complete(progress_delta=progress_delta, total_work=total_work)

    if total_work == 0:
        remaining_work = _ZERO
        seconds_remaining: int | None = 0
    else:
        remaining_work = calculate_remaining_work(
            goal=goal, baseline=baseline, current=current_value, convention=convention
        )
        seconds_remaining = calculate_seconds_remaining(
            remaining_work=remaining_work, average_rate=average_rate
        )

    eta_timestamp = calculate_eta(
        start_time=start_time,
        elapsed_seconds=elapsed_seconds,
        seconds_remaining=seconds_remaining,
    )

    return ProgressSnapshot(
        goal=goal,
        baseline=baseline,
        current_value=current_value,
        elapsed_seconds=elapsed_seconds,
        total_work=total_work,
        remaining_work=remaining_work,
        progress_delta=progress_delta,
        average_rate=average_rate,
        percent_complete=percent_complete,
        seconds_remaining=seconds_remaining,
        eta_timestamp=eta_timestamp,
        direction=classify_direction(total_work=total_work, average_rate=average_rate),
    )


def decompose_duration(seconds: int) -> DurationBreakdown:
    """Express a number of seconds separately in minutes, hours and days.

    Each unit is derived from the previous one with truncating division,
    so rounding loss accumulates toward coarser units.

    Raises:
        ValueError: If seconds is negative

    Examples:
        >>> b = decompose_duration(49)
        >>> b.minutes, b.hours, b.days
        (Decimal('0.8166'), Decimal('0.0136'), Decimal('0.0005'))
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    minutes = _divide(Decimal(seconds), Decimal(60))
    hours = _divide(minutes, Decimal(60))
    days = _divide(hours, Decimal(24))

    return DurationBreakdown(days=days, hours=hours, minutes=minutes, seconds=seconds)
