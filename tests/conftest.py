from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pipesh.config import Settings


class ExecCalled(Exception):
    """Raised by the fake exec so the stage body stops where a real exec would."""

    def __init__(self, args: list[str]) -> None:
        super().__init__(args)
        self.args_list = args


class FakeProcessOps:
    """Recording stand-in for the host process primitives.

    ``spawn`` only records the child body and returns a pid, i.e. the
    interpreter side of a fork. Descriptors are plain integers tracked in
    ``open_fds`` so tests can check who closed what.
    """

    def __init__(
        self,
        *,
        missing: set[str] | None = None,
        unopenable: set[str] | None = None,
        interrupt_once: set[int] | None = None,
    ) -> None:
        self.interrupt_once = interrupt_once or set()
        self.missing = missing or set()
        self.unopenable = unopenable or set()
        self.calls: list[tuple[Any, ...]] = []
        self.children: list[Callable[[], int]] = []
        self.open_fds: set[int] = set()
        self.waited: list[int] = []
        self.written: list[tuple[int, str]] = []
        self.cwd = "/"
        self._next_fd = 10
        self._next_pid = 100

    def _alloc(self) -> int:
        fd = self._next_fd
        self._next_fd += 1
        self.open_fds.add(fd)
        return fd

    def spawn(self, child: Callable[[], int]) -> int:
        pid = self._next_pid
        self._next_pid += 1
        self.children.append(child)
        self.calls.append(("spawn", pid, frozenset(self.open_fds)))
        return pid

    def pipe(self) -> tuple[int, int]:
        read_fd, write_fd = self._alloc(), self._alloc()
        self.calls.append(("pipe", read_fd, write_fd))
        return read_fd, write_fd

    def dup2(self, fd: int, fd2: int) -> None:
        self.calls.append(("dup2", fd, fd2))

    def close(self, fd: int) -> None:
        assert fd in self.open_fds, f"double close of {fd}"
        self.open_fds.discard(fd)
        self.calls.append(("close", fd))

    def open(self, path: str, flags: int, mode: int = 0o644) -> int:
        if "\x00" in path:
            raise ValueError("embedded null byte")
        if path in self.unopenable:
            raise PermissionError(13, "Permission denied", path)
        fd = self._alloc()
        self.calls.append(("open", path, flags, fd))
        return fd

    def execvp(self, file: str, args: list[str]):
        self.calls.append(("execvp", file, list(args)))
        if any("\x00" in arg for arg in args):
            raise ValueError("embedded null byte")
        if file in self.missing:
            raise FileNotFoundError(2, "No such file or directory", file)
        raise ExecCalled(list(args))

    def waitpid(self, pid: int) -> int:
        if pid in self.interrupt_once:
            self.interrupt_once.discard(pid)
            raise KeyboardInterrupt
        self.waited.append(pid)
        self.calls.append(("waitpid", pid))
        return 0

    def chdir(self, path: str) -> None:
        if "\x00" in path:
            raise ValueError("embedded null byte")
        if path.startswith("/nonexistent"):
            raise FileNotFoundError(2, "No such file or directory", path)
        self.cwd = path

    def write(self, fd: int, text: str) -> None:
        self.written.append((fd, text))

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_ops() -> FakeProcessOps:
    return FakeProcessOps()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture(autouse=True)
def _clear_pipesh_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PIPESH_PROMPT", "PIPESH_MAX_ARGS", "PIPESH_MAX_LINE_LENGTH", "PIPESH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
