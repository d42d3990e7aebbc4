"""pipesh - a minimal pipeline shell."""

from .config import Settings, get_settings
from .core import Shell

__version__ = "0.1.0"

__all__ = ["Settings", "Shell", "get_settings"]
