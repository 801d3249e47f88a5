"""Application layer: command-line interface, runner and status renderer."""

from progpipe.app.display import StatusRenderer
from progpipe.app.runner import ApplicationRunner

__all__ = ["ApplicationRunner", "StatusRenderer"]
