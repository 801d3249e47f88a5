"""progpipe - Estimate time to completion for any progressing number read from a pipe.

This package reads one numeric sample per input line, tracks its progress
from the first observed value toward a goal, and renders percent complete,
average rate and projected completion time as a live status line.
"""

from progpipe.__main__ import main

__all__ = ["main"]
