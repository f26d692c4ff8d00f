"""
Value types shared by the collector, the decision policies and the rewriter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..errors import ReplacementError

_TERMINATORS = ("\r\n", "\n", "\r")


def split_terminator(text: str) -> tuple[str, str]:
    """Split *text* into ``(content, terminator)``."""
    for term in _TERMINATORS:
        if text.endswith(term):
            return text[: -len(term)], term
    return text, ""


@dataclass(frozen=True)
class Line:
    """One physical line of a file, terminator included."""
    number: int
    text: str


@dataclass(frozen=True)
class Match:
    """A matched line plus the context lines reported around it."""
    line: Line
    context_pre: tuple[Line, ...] = ()
    context_post: tuple[Line, ...] = ()

    @property
    def number(self) -> int:
        return self.line.number


class EventKind(Enum):
    BEFORE_CONTEXT = "before"
    MATCH = "match"
    AFTER_CONTEXT = "after"


@dataclass(frozen=True)
class LineEvent:
    """A single notification from the line searcher."""
    kind: EventKind
    line: Line


@dataclass(frozen=True)
class MatchReplacement:
    """An accepted (or edited) replacement for one matched line.

    The replacement must stay a single physical line: a terminator is only
    allowed as the very last character(s).
    """
    source: Match
    replacement_text: str = field(default="")

    def __post_init__(self) -> None:
        content, _ = split_terminator(self.replacement_text)
        if "\n" in content or "\r" in content:
            raise ReplacementError(
                f"replacement for line {self.source.number} spans multiple lines"
            )

    @property
    def number(self) -> int:
        return self.source.number
