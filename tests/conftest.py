"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import pytest

from tests.fixtures.sample_generators import DEFAULT_START_EPOCH


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Undo configure_logging() changes so handlers never outlive a test's streams."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    try:
        yield
    finally:
        root_logger.handlers[:] = handlers
        root_logger.setLevel(level)


@pytest.fixture
def start_time() -> datetime:
    """Wall-clock start time matching the default scripted start epoch."""
    return datetime.fromtimestamp(int(DEFAULT_START_EPOCH))


@pytest.fixture
def sample_config() -> dict[str, object]:
    """Provide sample configuration for testing."""
    return {
        "estimation": {
            "rate_convention": "magnitude",
        },
        "display": {
            "message": "File Download",
            "verbose": True,
            "debug": False,
            "timestamp_format": "%Y-%m-%d %H:%M:%S",
        },
        "input": {
            "field": 2,
        },
        "application": {
            "log_level": "INFO",
            "syslog_enabled": False,
        },
    }


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a minimal valid configuration file and return its path."""
    path = tmp_path / "progpipe.yaml"
    _ = path.write_text(
        "display:\n"
        "  message: Counting Up\n"
        "  verbose: true\n"
        "input:\n"
        "  field: 1\n"
    )
    return path
