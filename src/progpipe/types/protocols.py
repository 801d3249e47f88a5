"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols for the collaborators
around the estimation engine without requiring inheritance.
"""

from typing import Protocol, runtime_checkable

from progpipe.types.models import ProgressState, ProgressSnapshot


@runtime_checkable
class SnapshotSink(Protocol):
    """Protocol for consumers of progress snapshots.

    Defines the interface for displaying snapshots produced by the
    estimation loop. The sink decides formatting; the loop never emits
    more than one snapshot per input sample.
    """

    def waiting(self) -> None:
        """Signal that a sample was held back and no snapshot is available yet."""
        ...

    def render(self, snapshot: ProgressSnapshot, state: ProgressState) -> None:
        """Display a single snapshot.

        Args:
            snapshot: Metrics computed for the latest sample
            state: Running loop state the snapshot was computed from
        """
        ...
