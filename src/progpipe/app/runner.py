"""Application runner wiring the sample source, estimation loop and renderer."""

from __future__ import annotations

import logging
import sys
import time
import uuid
from collections.abc import Iterable
from decimal import Decimal

from progpipe.app.display import StatusRenderer
from progpipe.core.config import MainConfig
from progpipe.core.estimation import EstimationLoop
from progpipe.core.source import read_samples
from progpipe.types.aliases import Clock
from progpipe.types.protocols import SnapshotSink
from progpipe.utils.logging import clear_run_id, set_run_id

logger = logging.getLogger(__name__)


class ApplicationRunner:
    """Main application runner that coordinates all components."""

    def __init__(
        self,
        *,
        goal: Decimal,
        config: MainConfig,
        lines: Iterable[str] | None = None,
        sink: SnapshotSink | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the application runner.

        Args:
            goal: Parsed goal value
            config: Validated configuration with CLI overrides applied
            lines: Input lines (standard input when None)
            sink: Snapshot consumer (a StatusRenderer built from config when None)
            clock: Source of epoch seconds (time.time when None)
        """
        self.goal: Decimal = goal
        self.config: MainConfig = config
        self.lines: Iterable[str] = lines if lines is not None else sys.stdin
        self.sink: SnapshotSink = sink if sink is not None else StatusRenderer(
            message=config.display.message,
            verbose=config.display.verbose,
            debug=config.display.debug,
            timestamp_format=config.display.timestamp_format,
        )
        self.clock: Clock = clock if clock is not None else time.time

    def run(self) -> int:
        """Run the estimation loop until the input ends.

        Returns:
            Number of snapshots rendered

        Raises:
            InvalidSampleError: If an input line cannot be parsed
        """
        set_run_id(uuid.uuid4().hex[:8])
        try:
            loop = EstimationLoop(
                self.goal,
                clock=self.clock,
                convention=self.config.estimation.rate_convention,
            )
            logger.info(
                "Starting progress estimation",
                extra={
                    "goal": str(self.goal),
                    "field": self.config.input.field,
                    "convention": self.config.estimation.rate_convention.value,
                },
            )

            samples = read_samples(self.lines, field=self.config.input.field)

            rendered = 0
            for snapshot in loop.run(samples, on_hold=self.sink.waiting):
                self.sink.render(snapshot, loop.progress_state)
                rendered += 1

            logger.info(
                "Input ended",
                extra={
                    "samples_seen": loop.progress_state.samples_seen,
                    "snapshots": rendered,
                },
            )
            return rendered
        finally:
            clear_run_id()
