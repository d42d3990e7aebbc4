"""Core parsing and process orchestration."""

from .line import LineBuffer, Span, split_first, split_sequence
from .pipeline import PipelineResult, PipelineRunner, PipelineState
from .process import PosixProcessOps, ProcessOps
from .redirect import apply_redirections, remaining_args
from .shell import Shell
from .tokenizer import ArgumentVector, tokenize

__all__ = [
    "ArgumentVector",
    "LineBuffer",
    "PipelineResult",
    "PipelineRunner",
    "PipelineState",
    "PosixProcessOps",
    "ProcessOps",
    "Shell",
    "Span",
    "apply_redirections",
    "remaining_args",
    "split_first",
    "split_sequence",
    "tokenize",
]
