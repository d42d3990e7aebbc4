"""Interactive prompt loop."""

from __future__ import annotations

import io
import sys
from collections.abc import Callable

from loguru import logger
from rich.console import Console

from pipesh.core.shell import Shell

LineReader = Callable[[str], str]


class InteractiveShell:
    """Prompt, read one line, run it, and repeat until an empty line."""

    def __init__(
        self,
        shell: Shell,
        *,
        prompt: str = ">>> ",
        console: Console | None = None,
        reader: LineReader | None = None,
    ) -> None:
        self._shell = shell
        self._prompt = prompt
        self._console = console or Console(highlight=False, soft_wrap=True)
        self._reader = reader or self._console_reader

    def run(self) -> int:
        while True:
            try:
                line = self._read_line()
            except UnicodeDecodeError as exc:
                logger.debug("interactive.undecodable_input error={}", exc)
                self._console.print(f"pipesh: input is not valid text ({exc.reason})", markup=False)
                continue
            if not line:
                logger.debug("interactive.exit")
                return 0
            try:
                self._shell.run_line(line)
            except Exception as exc:
                # Keep the prompt alive; the line's stages are already reaped.
                logger.exception("interactive.line_failed")
                self._console.print(f"pipesh: {exc!s}", markup=False)

    def _read_line(self) -> str | None:
        try:
            return self._reader(self._prompt)
        except (KeyboardInterrupt, EOFError):
            self._console.print()
            return None

    def _console_reader(self, prompt: str) -> str:
        # Undecodable bytes reach exec as the same bytes, via os.fsencode.
        if isinstance(sys.stdin, io.TextIOWrapper) and sys.stdin.errors != "surrogateescape":
            sys.stdin.reconfigure(errors="surrogateescape")
        return self._console.input(prompt, markup=False)
