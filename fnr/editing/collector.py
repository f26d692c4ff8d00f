"""
Match collector — folds the searcher's flat line-event stream into discrete
match records, each carrying its own before/after context.

The folding is a small finite-state machine.  :func:`transition` is pure:
given the current state and one event it returns the next state and, when
the event closes off a pending match, that match.  A match is only ever
finalised there (or by :func:`finish` at end of input), so a line can never
be the primary line of two records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from .types import EventKind, Line, LineEvent, Match


class Phase(Enum):
    SEEKING = "seeking"
    IN_MATCH = "in_match"
    IN_AFTER_CONTEXT = "in_after_context"


@dataclass(frozen=True)
class CollectorState:
    """Phase plus the buffers of the match being assembled."""
    phase: Phase = Phase.SEEKING
    match_line: Optional[Line] = None
    pre: tuple[Line, ...] = ()
    post: tuple[Line, ...] = ()


INITIAL_STATE = CollectorState()


def _emit(state: CollectorState) -> Optional[Match]:
    if state.match_line is None:
        return None
    return Match(line=state.match_line, context_pre=state.pre,
                 context_post=state.post)


def transition(
    state: CollectorState,
    event: LineEvent,
) -> tuple[CollectorState, Optional[Match]]:
    """Advance the collector by one event.

    Returns ``(new_state, emitted)`` where *emitted* is the match closed off
    by this event, or ``None``.
    """
    kind, line = event.kind, event.line

    if state.phase is Phase.SEEKING:
        if kind is EventKind.BEFORE_CONTEXT:
            return CollectorState(pre=state.pre + (line,)), None
        if kind is EventKind.MATCH:
            return CollectorState(Phase.IN_MATCH, line, state.pre), None
        # After-context with nothing pending
        return state, None

    if kind is EventKind.AFTER_CONTEXT:
        return CollectorState(Phase.IN_AFTER_CONTEXT, state.match_line,
                              state.pre, state.post + (line,)), None

    emitted = _emit(state)
    if kind is EventKind.BEFORE_CONTEXT:
        return CollectorState(pre=(line,)), emitted
    return CollectorState(Phase.IN_MATCH, line), emitted


def finish(state: CollectorState) -> Optional[Match]:
    """Return the pending match at end of input, if any."""
    if state.phase is Phase.SEEKING:
        return None
    return _emit(state)


class MatchCollector:
    """Stateful wrapper around :func:`transition` for one file at a time."""

    def __init__(self) -> None:
        self._state = INITIAL_STATE

    @property
    def state(self) -> CollectorState:
        return self._state

    def feed(self, event: LineEvent) -> Optional[Match]:
        self._state, emitted = transition(self._state, event)
        return emitted

    def finalize(self) -> Optional[Match]:
        emitted = finish(self._state)
        self._state = INITIAL_STATE
        return emitted

    def collect(self, events: Iterable[LineEvent]) -> Iterator[Match]:
        """Lazily yield the matches of one file's event stream."""
        self._state = INITIAL_STATE
        for event in events:
            emitted = self.feed(event)
            if emitted is not None:
                yield emitted
        last = self.finalize()
        if last is not None:
            yield last
