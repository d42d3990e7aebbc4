"""Pipeline orchestration for one sequence group.

A group such as ``ls -l | grep py > out.txt`` is run by ``PipelineRunner``
as an explicit state machine::

    PARSE_SEGMENT -> [SETUP_PIPE] -> SPAWN_STAGE -> LINK_NEXT -> PARSE_SEGMENT ...
                                                            \\-> DRAIN_WAITS

``PARSE_SEGMENT`` also jumps straight to ``DRAIN_WAITS`` on an empty stage or
a built-in. Stages run concurrently; the runner only returns once every
stage process it spawned has been reaped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from loguru import logger

from pipesh.errors import PipelineInvariantError, PipelineStateError, RedirectionError

from .builtins import BUILTINS, is_builtin
from .line import PIPE, LineBuffer, Span, split_first
from .process import STDIN_FILENO, STDOUT_FILENO, ProcessOps
from .redirect import apply_redirections, remaining_args
from .tokenizer import DEFAULT_MAX_ARGS, ArgumentVector, tokenize

REDIRECTION_FAILED = "Redirection failed\n"
STAGE_FAILURE_STATUS = 1


class PipelineState(Enum):
    PARSE_SEGMENT = auto()
    SETUP_PIPE = auto()
    SPAWN_STAGE = auto()
    LINK_NEXT = auto()
    DRAIN_WAITS = auto()


TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.PARSE_SEGMENT: frozenset(
        {PipelineState.SETUP_PIPE, PipelineState.SPAWN_STAGE, PipelineState.DRAIN_WAITS}
    ),
    PipelineState.SETUP_PIPE: frozenset({PipelineState.SPAWN_STAGE}),
    PipelineState.SPAWN_STAGE: frozenset({PipelineState.LINK_NEXT}),
    PipelineState.LINK_NEXT: frozenset({PipelineState.PARSE_SEGMENT, PipelineState.DRAIN_WAITS}),
    PipelineState.DRAIN_WAITS: frozenset(),
}


@dataclass(frozen=True)
class PipeEnds:
    read: int
    write: int


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one sequence group."""

    pids: tuple[int, ...] = ()
    exit_statuses: tuple[int, ...] = ()
    builtin: str | None = None


class DescriptorLedger:
    """Descriptors currently owned by the interpreter process."""

    def __init__(self, ops: ProcessOps) -> None:
        self._ops = ops
        self._held: set[int] = set()

    @property
    def held(self) -> frozenset[int]:
        return frozenset(self._held)

    def adopt(self, *fds: int) -> None:
        self._held.update(fds)

    def release(self, fd: int) -> None:
        if fd not in self._held:
            raise PipelineInvariantError(f"descriptor {fd} is not owned by the interpreter")
        self._held.discard(fd)
        self._ops.close(fd)

    def release_all(self) -> None:
        for fd in sorted(self._held):
            self.release(fd)

    def expect_only(self, allowed: set[int]) -> None:
        leaked = self._held - allowed
        if leaked:
            raise PipelineInvariantError(f"interpreter still holds descriptors {sorted(leaked)}")


class PipelineRunner:
    """Run the stages of one ``|``-separated group and reap them."""

    def __init__(
        self,
        line: LineBuffer,
        group: Span,
        *,
        ops: ProcessOps,
        max_args: int = DEFAULT_MAX_ARGS,
    ) -> None:
        self._line = line
        self._rest: Span | None = group
        self._ops = ops
        self._max_args = max_args
        self._ledger = DescriptorLedger(ops)
        self._state = PipelineState.PARSE_SEGMENT
        self._stage: ArgumentVector | None = None
        self._pipe: PipeEnds | None = None
        self._pending_input: int | None = None
        self._pids: list[int] = []
        self._builtin: str | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def held_descriptors(self) -> frozenset[int]:
        return self._ledger.held

    def run(self) -> PipelineResult:
        """Spawn every stage, then reap them all.

        Descriptors are closed and spawned stages reaped even when parsing a
        later stage or a built-in raised; the error is re-raised afterwards.
        """

        handlers = {
            PipelineState.PARSE_SEGMENT: self._parse_segment,
            PipelineState.SETUP_PIPE: self._setup_pipe,
            PipelineState.SPAWN_STAGE: self._spawn_stage,
            PipelineState.LINK_NEXT: self._link_next,
        }
        try:
            while self._state is not PipelineState.DRAIN_WAITS:
                self._advance(handlers[self._state]())
        finally:
            statuses = self._drain_waits()
        return PipelineResult(pids=tuple(self._pids), exit_statuses=statuses, builtin=self._builtin)

    def _advance(self, target: PipelineState) -> None:
        if target not in TRANSITIONS[self._state]:
            raise PipelineStateError(f"illegal transition {self._state.name} -> {target.name}")
        self._state = target

    def _parse_segment(self) -> PipelineState:
        if self._rest is None:
            raise PipelineStateError("no segment left to parse")
        current, self._rest = split_first(self._line, self._rest, PIPE)
        argv = tokenize(self._line, current, max_args=self._max_args)
        if not argv:
            logger.debug("pipeline.empty_stage index={}", len(self._pids))
            return PipelineState.DRAIN_WAITS
        if is_builtin(argv[0]):
            self._run_builtin(argv)
            return PipelineState.DRAIN_WAITS

        self._stage = argv
        return PipelineState.SETUP_PIPE if self._rest is not None else PipelineState.SPAWN_STAGE

    def _run_builtin(self, argv: ArgumentVector) -> None:
        name = argv[0]
        if self._pids or self._rest is not None:
            logger.warning("pipeline.builtin_ends_group name={} spawned={}", name, len(self._pids))
        self._builtin = name
        BUILTINS[name](argv.words(), self._ops)

    def _setup_pipe(self) -> PipelineState:
        read_fd, write_fd = self._ops.pipe()
        self._ledger.adopt(read_fd, write_fd)
        self._pipe = PipeEnds(read=read_fd, write=write_fd)
        logger.debug("pipeline.pipe read={} write={}", read_fd, write_fd)
        return PipelineState.SPAWN_STAGE

    def _spawn_stage(self) -> PipelineState:
        if self._stage is None:
            raise PipelineStateError("no stage parsed before spawn")
        stage, pending_input, pipe = self._stage, self._pending_input, self._pipe
        pid = self._ops.spawn(lambda: run_stage(stage, self._ops, pending_input=pending_input, pipe=pipe))
        self._pids.append(pid)
        logger.debug("pipeline.spawned pid={} argv={}", pid, stage.words())
        return PipelineState.LINK_NEXT

    def _link_next(self) -> PipelineState:
        if self._pending_input is not None:
            self._ledger.release(self._pending_input)
            self._pending_input = None
        if self._pipe is not None:
            self._ledger.release(self._pipe.write)
            self._pending_input = self._pipe.read
            self._pipe = None
        self._stage = None

        self._ledger.expect_only(set() if self._pending_input is None else {self._pending_input})
        return PipelineState.PARSE_SEGMENT if self._rest is not None else PipelineState.DRAIN_WAITS

    def _drain_waits(self) -> tuple[int, ...]:
        # Unconsumed read ends are closed before any stage is reaped.
        self._ledger.release_all()
        self._pending_input = None
        self._pipe = None
        self._state = PipelineState.DRAIN_WAITS

        statuses: list[int] = []
        for pid in self._pids:
            status = self._reap(pid)
            logger.debug("pipeline.reaped pid={} status={}", pid, status)
            statuses.append(status)
        return tuple(statuses)

    def _reap(self, pid: int) -> int:
        # Stages receive Ctrl-C as well; an interrupted wait is retried.
        while True:
            try:
                return self._ops.waitpid(pid)
            except KeyboardInterrupt:
                logger.warning("pipeline.reap_interrupted pid={}", pid)


def run_stage(
    argv: ArgumentVector,
    ops: ProcessOps,
    *,
    pending_input: int | None = None,
    pipe: PipeEnds | None = None,
) -> int:
    """Body of a stage process: wire descriptors, redirect, exec.

    Returns the exit status only when the stage could not be started. Pipe
    wiring happens first so an explicit ``<`` or ``>`` overrides it.
    """

    if pending_input is not None:
        ops.dup2(pending_input, STDIN_FILENO)
        ops.close(pending_input)
    if pipe is not None:
        ops.close(pipe.read)
        ops.dup2(pipe.write, STDOUT_FILENO)
        ops.close(pipe.write)

    slots = argv.to_slots()
    try:
        apply_redirections(slots, ops)
    except RedirectionError as exc:
        logger.debug("stage.redirection_failed error={}", exc)
        ops.write(STDOUT_FILENO, REDIRECTION_FAILED)
        return STAGE_FAILURE_STATUS

    args = remaining_args(slots)
    if not args:
        # Only redirections, e.g. "> out.txt": the file is already created.
        return 0
    try:
        ops.execvp(args[0], args)
    except (OSError, ValueError) as exc:
        logger.debug("stage.exec_failed name={} error={}", args[0], exc)
    ops.write(STDOUT_FILENO, f"{args[0]}: command not found\n")
    return STAGE_FAILURE_STATUS
