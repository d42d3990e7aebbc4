"""Input line arena.

A ``LineBuffer`` owns the text of one prompt cycle. Segments and tokens are
``Span`` views into it, so nothing is copied or rewritten while parsing.
"""

from __future__ import annotations

from dataclasses import dataclass

PIPE = "|"
SEQUENCE = ";"


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` range into a line."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def text_of(self, line: LineBuffer) -> str:
        return line.text[self.start : self.end]


@dataclass(frozen=True)
class LineBuffer:
    """One user-entered line."""

    text: str

    def __len__(self) -> int:
        return len(self.text)

    @property
    def whole(self) -> Span:
        return Span(0, len(self.text))


def split_first(line: LineBuffer, span: Span, delimiter: str) -> tuple[Span, Span | None]:
    """Split ``span`` on the first ``delimiter``.

    The delimiter belongs to neither part. ``rest`` is None when the
    delimiter does not occur, and an empty span when it ends the text.
    """

    index = line.text.find(delimiter, span.start, span.end)
    if index < 0:
        return span, None
    return Span(span.start, index), Span(index + len(delimiter), span.end)


def split_sequence(line: LineBuffer) -> list[Span]:
    """Split a whole line into its ``;``-separated groups, in order."""

    groups: list[Span] = []
    rest: Span | None = line.whole
    while rest is not None:
        head, rest = split_first(line, rest, SEQUENCE)
        groups.append(head)
    return groups
