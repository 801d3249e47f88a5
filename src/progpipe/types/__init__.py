"""Type definitions and protocols for progpipe.

This package provides:
- Data models (state, snapshot and duration dataclasses)
- Protocol definitions (structural subtyping interfaces)
- Type aliases (PEP 695 modern syntax)
"""

from progpipe.types.aliases import (
    Clock,
    RawValue,
    SampleStream,
)
from progpipe.types.models import (
    DurationBreakdown,
    ProgressDirection,
    ProgressSnapshot,
    ProgressState,
)
from progpipe.types.protocols import SnapshotSink

__all__ = [
    # Type aliases
    "Clock",
    "RawValue",
    "SampleStream",
    # Data models
    "DurationBreakdown",
    "ProgressDirection",
    "ProgressSnapshot",
    "ProgressState",
    # Protocols
    "SnapshotSink",
]
