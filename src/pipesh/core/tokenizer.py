"""Whitespace tokenizer producing argument vectors."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from pipesh.errors import CapacityExceededError

from .line import LineBuffer, Span

# Only space, tab and newline separate words; quotes are ordinary characters.
WORD_RE = re.compile(r"[^ \t\n]+")
DEFAULT_MAX_ARGS = 32


@dataclass(frozen=True)
class ArgumentVector:
    """Ordered argument spans of one stage, bounded by ``max_args``."""

    line: LineBuffer
    spans: tuple[Span, ...]

    def __len__(self) -> int:
        return len(self.spans)

    def __getitem__(self, index: int) -> str:
        return self.spans[index].text_of(self.line)

    def __iter__(self) -> Iterator[str]:
        return iter(self.words())

    def __bool__(self) -> bool:
        return bool(self.spans)

    def words(self) -> list[str]:
        return [span.text_of(self.line) for span in self.spans]

    def to_slots(self) -> list[str | None]:
        """Return the words followed by the ``None`` sentinel slot."""

        slots: list[str | None] = list(self.words())
        slots.append(None)
        return slots


def tokenize(line: LineBuffer, span: Span | None = None, *, max_args: int = DEFAULT_MAX_ARGS) -> ArgumentVector:
    """Split ``span`` of ``line`` (the whole line by default) into arguments.

    Raises:
        CapacityExceededError: more than ``max_args`` words were found.
    """

    if span is None:
        span = line.whole

    spans: list[Span] = []
    for match in WORD_RE.finditer(line.text, span.start, span.end):
        if len(spans) == max_args:
            raise CapacityExceededError(f"too many arguments (max {max_args})")
        spans.append(Span(match.start(), match.end()))
    return ArgumentVector(line=line, spans=tuple(spans))
