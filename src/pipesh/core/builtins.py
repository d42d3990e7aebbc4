"""Commands run inside the interpreter process instead of a stage process."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from pipesh.errors import BuiltinError

from .process import ProcessOps

BuiltinHandler = Callable[[list[str], ProcessOps], None]


def change_directory(args: list[str], ops: ProcessOps) -> None:
    """``cd <path>``: change the interpreter's working directory."""

    if len(args) < 2:
        logger.debug("builtin.cd missing operand")
        raise BuiltinError("cd: failed to change directory")
    try:
        ops.chdir(args[1])
    except (OSError, ValueError) as exc:
        logger.debug("builtin.cd path={} error={}", args[1], exc)
        raise BuiltinError("cd: failed to change directory") from exc


BUILTINS: dict[str, BuiltinHandler] = {
    "cd": change_directory,
}


def is_builtin(name: str) -> bool:
    return name in BUILTINS
