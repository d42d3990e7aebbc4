"""Process and descriptor primitives used by the orchestrator.

Every spawned stage receives a copy of the descriptor table at fork time.
Only the descriptors handed to it explicitly (pipe ends, redirection files)
are shared with other processes; everything else the orchestrator closes.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from typing import NoReturn, Protocol

from loguru import logger

STDIN_FILENO = 0
STDOUT_FILENO = 1

OUTPUT_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
INPUT_FLAGS = os.O_RDONLY
FILE_MODE = 0o644

ChildMain = Callable[[], int]


class ProcessOps(Protocol):
    """Capability interface over the host process primitives."""

    def spawn(self, child: ChildMain) -> int: ...

    def pipe(self) -> tuple[int, int]: ...

    def dup2(self, fd: int, fd2: int) -> None: ...

    def close(self, fd: int) -> None: ...

    def open(self, path: str, flags: int, mode: int = FILE_MODE) -> int: ...

    def execvp(self, file: str, args: list[str]) -> NoReturn: ...

    def waitpid(self, pid: int) -> int: ...

    def chdir(self, path: str) -> None: ...

    def write(self, fd: int, text: str) -> None: ...


class PosixProcessOps:
    """``ProcessOps`` backed by the ``os`` module."""

    def spawn(self, child: ChildMain) -> int:
        """Fork and run ``child`` in the new process.

        The child never returns from this call: it either replaces its image
        inside ``child`` or exits with the status ``child`` returns (1 if it
        raised).
        """

        # Pending Python-level output must not be inherited by the child.
        sys.stdout.flush()
        sys.stderr.flush()
        pid = os.fork()
        if pid != 0:
            return pid

        status = 1
        try:
            status = child()
        except BaseException:
            logger.exception("stage.setup_failed pid={}", os.getpid())
        finally:
            os._exit(status)

    def pipe(self) -> tuple[int, int]:
        return os.pipe()

    def dup2(self, fd: int, fd2: int) -> None:
        os.dup2(fd, fd2)

    def close(self, fd: int) -> None:
        os.close(fd)

    def open(self, path: str, flags: int, mode: int = FILE_MODE) -> int:
        return os.open(path, flags, mode)

    def execvp(self, file: str, args: list[str]) -> NoReturn:
        os.execvp(file, args)

    def waitpid(self, pid: int) -> int:
        _, status = os.waitpid(pid, 0)
        return os.waitstatus_to_exitcode(status)

    def chdir(self, path: str) -> None:
        os.chdir(path)

    def write(self, fd: int, text: str) -> None:
        os.write(fd, os.fsencode(text))
