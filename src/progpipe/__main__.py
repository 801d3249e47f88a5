"""Application entry point for progpipe.

Supports both ``python -m progpipe`` and the ``progpipe`` console script.
"""

from __future__ import annotations

from typing import NoReturn

from progpipe.app.cli import cli

__all__ = ["main"]


def main() -> NoReturn:
    """Run the command-line interface and exit with its status code."""
    cli(prog_name="progpipe")
    raise SystemExit(0)


if __name__ == "__main__":
    main()
