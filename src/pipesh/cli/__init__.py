"""Command line interface."""

from .app import app
from .interactive import InteractiveShell

__all__ = ["InteractiveShell", "app"]
