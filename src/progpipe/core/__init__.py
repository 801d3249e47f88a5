"""Core estimation engine: progress model, estimation loop and sample source."""

from progpipe.core.calculation import (
    PRECISION,
    RateConvention,
    compute_snapshot,
    decompose_duration,
)
from progpipe.core.estimation import EstimationLoop, LoopState, run
from progpipe.core.exceptions import (
    InvalidGoalError,
    InvalidSampleError,
    ProgpipeError,
)
from progpipe.core.source import parse_goal, parse_number, read_samples, select_field

__all__ = [
    "PRECISION",
    "EstimationLoop",
    "InvalidGoalError",
    "InvalidSampleError",
    "LoopState",
    "ProgpipeError",
    "RateConvention",
    "compute_snapshot",
    "decompose_duration",
    "parse_goal",
    "parse_number",
    "read_samples",
    "run",
    "select_field",
]
