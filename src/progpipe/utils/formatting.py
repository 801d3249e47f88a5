"""Pure formatting utilities for human-readable output.

This module provides stateless formatting functions for turning progress
snapshots into the text written by the render sink. All functions are pure
with no side effects.
"""

from datetime import datetime
from typing import Final

from progpipe.core.calculation import decompose_duration
from progpipe.types.models import ProgressSnapshot, ProgressState

DEFAULT_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Shown wherever a value is undefined because the rate is not positive
INFINITE: Final[str] = "INF"

WAITING_MESSAGE: Final[str] = "Waiting for first data update..."

# Time unit constants
_MINUTE = 60
_HOUR = _MINUTE * 60  # 3,600
_DAY = _HOUR * 24  # 86,400


def format_duration(seconds: float) -> str:
    """Convert seconds to human-readable duration format.

    Automatically selects appropriate time units based on magnitude.
    Shows the two most significant units for values over 1 hour.

    Args:
        seconds: Duration in seconds (must be non-negative)

    Returns:
        Human-readable duration string with adaptive granularity.
        - Days: "Xd Yh" (shows days and remaining hours)
        - Hours: "Xh Ym" (shows hours and remaining minutes)
        - Minutes: "Xm Ys" (shows minutes and remaining seconds)
        - Seconds: "Xs" (shows seconds only)

    Examples:
        >>> format_duration(45)
        '45s'
        >>> format_duration(90)
        '1m 30s'
        >>> format_duration(3665)
        '1h 1m'
        >>> format_duration(90000)
        '1d 1h'
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)

    total_seconds = int(seconds)

    if total_seconds >= _DAY:
        days = total_seconds // _DAY
        hours = (total_seconds % _DAY) // _HOUR
        return f"{days}d {hours}h" if hours > 0 else f"{days}d"

    if total_seconds >= _HOUR:
        hours = total_seconds // _HOUR
        minutes = (total_seconds % _HOUR) // _MINUTE
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"

    if total_seconds >= _MINUTE:
        minutes = total_seconds // _MINUTE
        remaining = total_seconds % _MINUTE
        return f"{minutes}m {remaining}s" if remaining > 0 else f"{minutes}m"

    return f"{total_seconds}s"


def format_etc(eta: datetime | None, *, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT) -> str:
    """Format a projected completion time, or INF when undefined.

    Examples:
        >>> format_etc(datetime(2022, 6, 2, 14, 38, 40))
        '2022-06-02 14:38:40'
        >>> format_etc(None)
        'INF'
    """
    if eta is None:
        return INFINITE
    return eta.strftime(timestamp_format)


def format_status_line(
    snapshot: ProgressSnapshot,
    *,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> str:
    """Render the one-line progress summary.

    Format: ``[ {percent}% {current}/{goal} ]<TAB>avg/s:{rate}<TAB>etc:{eta}``

    Example:
        ``[ 47.5247% 48/101 ]     avg/s:4.0000    etc:2022-06-02 14:38:40``
    """
    return (
        f"[ {snapshot.percent_complete}% {snapshot.current_value}/{snapshot.goal} ]"
        f"\tavg/s:{snapshot.average_rate}"
        f"\tetc:{format_etc(snapshot.eta_timestamp, timestamp_format=timestamp_format)}"
    )


def format_time_breakdown(seconds_remaining: int | None) -> list[str]:
    """Render the verbose remaining-time block.

    Examples:
        >>> format_time_breakdown(49)
        ['---', 'Days:\\t0.0005', 'Hours:\\t0.0136', 'Minutes:\\t0.8166', 'Seconds:\\t49']
        >>> format_time_breakdown(None)[1]
        'Days:\\tINF'
    """
    if seconds_remaining is None:
        return [
            "---",
            f"Days:\t{INFINITE}",
            f"Hours:\t{INFINITE}",
            f"Minutes:\t{INFINITE}",
            f"Seconds:\t{INFINITE}",
        ]

    breakdown = decompose_duration(seconds_remaining)
    return [
        "---",
        f"Days:\t{breakdown.days}",
        f"Hours:\t{breakdown.hours}",
        f"Minutes:\t{breakdown.minutes}",
        f"Seconds:\t{breakdown.seconds}",
    ]


def format_debug_lines(snapshot: ProgressSnapshot, state: ProgressState) -> list[str]:
    """Render every internal value as ``name:<TAB>value`` lines."""
    seconds_left = INFINITE if snapshot.seconds_remaining is None else str(snapshot.seconds_remaining)
    remaining_human = (
        INFINITE if snapshot.seconds_remaining is None else format_duration(snapshot.seconds_remaining)
    )
    fields: list[tuple[str, object]] = [
        ("goal", state.goal),
        ("start_time", state.start_time.strftime(DEFAULT_TIMESTAMP_FORMAT)),
        ("samples_seen", state.samples_seen),
        ("current_value", snapshot.current_value),
        ("baseline", snapshot.baseline),
        ("elapsed_seconds", snapshot.elapsed_seconds),
        ("elapsed", format_duration(snapshot.elapsed_seconds)),
        ("total_work", snapshot.total_work),
        ("progress_delta", snapshot.progress_delta),
        ("remaining_work", snapshot.remaining_work),
        ("percent_complete", snapshot.percent_complete),
        ("average_rate", snapshot.average_rate),
        ("seconds_remaining", seconds_left),
        ("remaining", remaining_human),
        ("eta_timestamp", format_etc(snapshot.eta_timestamp)),
        ("direction", snapshot.direction.value),
    ]
    return [f"{name}:\t{value}" for name, value in fields]
