"""Logging infrastructure with run ID tracking and optional syslog integration.

Standard output is reserved for the status line, so console logging goes to
standard error. Every record carries the ID of the estimation run it
belongs to, taken from a ContextVar.
"""

import contextvars
import logging
import logging.handlers
import sys
from typing import Final, override

# Run ID context variable for tagging all records of one estimation run
run_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id",
    default=None,
)

# Log format constants
DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(run_id)s] - %(message)s"

SYSLOG_LOG_FORMAT: Final[str] = "progpipe[%(process)d]: %(levelname)s - [%(run_id)s] - %(name)s - %(message)s"

DEFAULT_SYSLOG_ADDRESS: Final[str] = "/dev/log"


class RunIDFilter(logging.Filter):
    """Logging filter that adds the run ID to log records.

    Retrieves the run ID from the ContextVar and adds it to each log
    record so output from concurrent pipelines can be told apart.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        """Add run ID to log record from ContextVar.

        Args:
            record: Log record to enhance with run ID

        Returns:
            True to allow the record to be logged
        """
        run_id = run_id_var.get()
        record.run_id = run_id if run_id is not None else "N/A"
        return True


def configure_logging(
    *,
    log_level: str = "WARNING",
    enable_syslog: bool = False,
    syslog_address: str = DEFAULT_SYSLOG_ADDRESS,
    enable_console: bool = True,
) -> None:
    """Configure application logging.

    Sets up logging infrastructure with:
    - Run ID tracking via ContextVar
    - Optional syslog handler
    - Console output on standard error

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_syslog: Enable syslog handler
        syslog_address: Syslog socket address
        enable_console: Enable console output handler

    Example:
        >>> configure_logging(log_level="INFO")
        >>> set_run_id("abc-123")
        >>> logging.getLogger(__name__).info("Baseline captured")
    """
    root_logger = logging.getLogger()

    level = getattr(logging, log_level.upper(), logging.WARNING)
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    run_id_filter = RunIDFilter()

    if enable_syslog:
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=syslog_address,
                facility=logging.handlers.SysLogHandler.LOG_USER,
            )
            syslog_handler.setFormatter(logging.Formatter(SYSLOG_LOG_FORMAT))
            syslog_handler.addFilter(run_id_filter)
            root_logger.addHandler(syslog_handler)

        except OSError as exc:
            # Syslog not available, fall back to console only
            print(
                f"Warning: Could not connect to syslog at {syslog_address}: {exc}",
                file=sys.stderr,
            )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        console_handler.addFilter(run_id_filter)
        root_logger.addHandler(console_handler)


def set_run_id(run_id: str) -> None:
    """Set the run ID for the current context.

    Args:
        run_id: Unique identifier for the run (e.g., UUID)
    """
    _ = run_id_var.set(run_id)


def get_run_id() -> str | None:
    """Get the current run ID from context."""
    return run_id_var.get()


def clear_run_id() -> None:
    """Clear the run ID from the current context."""
    _ = run_id_var.set(None)
