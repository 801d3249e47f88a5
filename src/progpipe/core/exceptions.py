"""Error taxonomy for the estimation engine and its input adapters."""

from __future__ import annotations


class ProgpipeError(Exception):
    """Base exception for all progpipe runtime errors."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        """Initialize ProgpipeError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.context: dict[str, object] = context or {}


class InvalidGoalError(ProgpipeError):
    """Exception raised when the goal is missing or not a number.

    Fatal at startup, before any sample is read.
    """

    def __init__(self, message: str, raw_value: str | None = None) -> None:
        """Initialize InvalidGoalError.

        Args:
            message: Error message
            raw_value: Goal text as supplied, if any
        """
        context: dict[str, object] = {}
        if raw_value is not None:
            context["raw_value"] = raw_value

        super().__init__(message, context)
        self.raw_value: str | None = raw_value


class InvalidSampleError(ProgpipeError):
    """Exception raised when an input unit cannot be turned into a number.

    Fatal for the run: skipping the sample would silently stall the
    displayed ETC.
    """

    def __init__(
        self,
        message: str,
        raw_value: str | None = None,
        line_number: int | None = None,
    ) -> None:
        """Initialize InvalidSampleError.

        Args:
            message: Error message
            raw_value: Offending input text
            line_number: 1-based input line the sample came from
        """
        context: dict[str, object] = {}
        if raw_value is not None:
            context["raw_value"] = raw_value
        if line_number is not None:
            context["line_number"] = line_number

        super().__init__(message, context)
        self.raw_value: str | None = raw_value
        self.line_number: int | None = line_number
