"""Application-level exception types for pipesh."""

from __future__ import annotations


class ShellError(Exception):
    """Base exception for pipesh. The message is a user-facing diagnostic."""


class CapacityExceededError(ShellError):
    """Raised when a line or an argument vector exceeds its configured bound."""


class RedirectionError(ShellError):
    """Raised when a redirection target cannot be opened."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}" if reason else path)


class BuiltinError(ShellError):
    """Raised when a built-in command fails in the interpreter process."""


class PipelineStateError(ShellError):
    """Raised on a transition the pipeline state machine does not allow."""


class PipelineInvariantError(ShellError):
    """Raised when the parent holds descriptors it should have handed off."""
