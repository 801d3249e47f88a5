"""Shared utility modules for common operations.

This package provides:
- Pure formatting functions for status lines, ETC text and time breakdowns
- Logging configuration with run ID tracking
"""

from progpipe.utils.formatting import (
    INFINITE,
    WAITING_MESSAGE,
    format_debug_lines,
    format_duration,
    format_etc,
    format_status_line,
    format_time_breakdown,
)

__all__ = [
    # Formatting utilities
    "INFINITE",
    "WAITING_MESSAGE",
    "format_debug_lines",
    "format_duration",
    "format_etc",
    "format_status_line",
    "format_time_breakdown",
]
