"""Input/output redirection applied inside a stage process."""

from __future__ import annotations

from loguru import logger

from pipesh.errors import RedirectionError

from .process import INPUT_FLAGS, OUTPUT_FLAGS, STDIN_FILENO, STDOUT_FILENO, ProcessOps

REDIRECT_IN = "<"
REDIRECT_OUT = ">"

_TARGETS: dict[str, tuple[int, int]] = {
    REDIRECT_IN: (INPUT_FLAGS, STDIN_FILENO),
    REDIRECT_OUT: (OUTPUT_FLAGS, STDOUT_FILENO),
}


def apply_redirections(slots: list[str | None], ops: ProcessOps) -> bool:
    """Rebind stdin/stdout for every ``<``/``>`` pair in ``slots``.

    Handled operator and filename slots are set to None. An operator with no
    filename after it is left as an ordinary argument.

    Returns:
        Whether any redirection was applied.

    Raises:
        RedirectionError: a named file could not be opened.
    """

    applied = False
    for index, token in enumerate(slots):
        if token not in _TARGETS or index + 1 >= len(slots):
            continue
        path = slots[index + 1]
        if path is None:
            continue

        flags, target = _TARGETS[token]
        try:
            fd = ops.open(path, flags)
        except (OSError, ValueError) as exc:
            raise RedirectionError(path, getattr(exc, "strerror", None) or str(exc)) from exc
        ops.dup2(fd, target)
        ops.close(fd)
        logger.debug("redirect.applied op={} path={} fd={}", token, path, target)

        slots[index] = None
        slots[index + 1] = None
        applied = True
    return applied


def remaining_args(slots: list[str | None]) -> list[str]:
    """Return the slots that survived redirection, in order."""

    return [slot for slot in slots if slot is not None]
