"""Line-level entry point: sequence groups run one after another."""

from __future__ import annotations

from collections.abc import Callable

import typer
from loguru import logger

from pipesh.config import Settings
from pipesh.errors import CapacityExceededError, ShellError

from .line import LineBuffer, split_sequence
from .pipeline import PipelineResult, PipelineRunner
from .process import PosixProcessOps, ProcessOps


class Shell:
    """Run input lines against the host process primitives."""

    def __init__(
        self,
        settings: Settings,
        ops: ProcessOps | None = None,
        echo: Callable[[str], None] = typer.echo,
    ) -> None:
        self.settings = settings
        self.ops = ops or PosixProcessOps()
        self._echo = echo

    def run_line(self, text: str) -> list[PipelineResult]:
        """Run every ``;`` group of ``text`` in order.

        Groups are independent: a failed command, a failed built-in or an
        over-long argument list in one group does not stop the next one.
        """

        if len(text) > self.settings.max_line_length:
            self._report(CapacityExceededError(f"line too long (max {self.settings.max_line_length} characters)"))
            return []

        line = LineBuffer(text)
        results: list[PipelineResult] = []
        for group in split_sequence(line):
            runner = PipelineRunner(line, group, ops=self.ops, max_args=self.settings.max_args)
            try:
                results.append(runner.run())
            except ShellError as exc:
                self._report(exc)
        return results

    def _report(self, exc: ShellError) -> None:
        logger.debug("shell.error kind={} message={}", type(exc).__name__, exc)
        self._echo(str(exc))
