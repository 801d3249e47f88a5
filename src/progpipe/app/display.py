"""Render sink writing progress snapshots as status lines."""

from __future__ import annotations

from typing import IO

import click

from progpipe.types.models import ProgressSnapshot, ProgressState
from progpipe.utils.formatting import (
    DEFAULT_TIMESTAMP_FORMAT,
    WAITING_MESSAGE,
    format_debug_lines,
    format_status_line,
    format_time_breakdown,
)


class StatusRenderer:
    """Writes one status block per snapshot.

    A block is the optional header message, the status line, and the
    optional verbose and debug sections. The waiting notice is printed at
    most once, when the first sample is held back, and never after a
    snapshot.
    """

    def __init__(
        self,
        *,
        message: str | None = None,
        verbose: bool = False,
        debug: bool = False,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
        file: IO[str] | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            message: Header line printed above every status line
            verbose: Print the remaining time broken down by unit
            debug: Print every internal value
            timestamp_format: strftime format for the ETC timestamp
            file: Output stream (standard output when None)
        """
        self.message: str | None = message
        self.verbose: bool = verbose
        self.debug: bool = debug
        self.timestamp_format: str = timestamp_format
        self._file: IO[str] | None = file
        self._announced_wait: bool = False
        self.rendered: int = 0

    def _echo(self, text: str) -> None:
        click.echo(text, file=self._file)

    def waiting(self) -> None:
        """Print the waiting notice once, until the first snapshot arrives."""
        if self._announced_wait or self.rendered:
            return
        self._announced_wait = True
        self._echo(WAITING_MESSAGE)

    def render(self, snapshot: ProgressSnapshot, state: ProgressState) -> None:
        """Write the status block for one snapshot."""
        if self.message:
            self._echo(self.message)

        self._echo(format_status_line(snapshot, timestamp_format=self.timestamp_format))

        if self.verbose:
            for line in format_time_breakdown(snapshot.seconds_remaining):
                self._echo(line)

        if self.debug:
            for line in format_debug_lines(snapshot, state):
                self._echo(line)

        self.rendered += 1
