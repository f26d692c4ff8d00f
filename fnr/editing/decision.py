"""
Decision policies — decide what happens to each proposed replacement.

``FixedPolicy`` answers the same way for every match (write-all or preview
runs).  ``InteractivePolicy`` asks the operator over a synchronous channel
and keeps a per-file scope so that "accept/ignore the rest of this file"
answers short-circuit later prompts.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Optional, Protocol

from .types import Match

logger = logging.getLogger(__name__)


class Decision(Enum):
    ACCEPT = "accept"
    IGNORE = "ignore"
    EDIT = "edit"
    TERMINATE = "terminate"


class DecisionScope(Enum):
    UNSET = "unset"
    FORCE_ACCEPT = "force_accept"
    FORCE_IGNORE = "force_ignore"


DECISION_PROMPT = "Stage this replacement [y,n,q,a,e,d,?] "
EDIT_PROMPT = "Replace with [empty to skip] "

HELP_TEXT = """\
y - replace this line
n - do not replace this line
q - quit; do not replace this line or any remaining ones
a - replace this line and all remaining ones in this file
d - do not replace this line nor any remaining ones in this file
e - edit this replacement
? - show help"""


class Channel(Protocol):
    """Single-consumer request/response exchange with the operator."""

    def prompt(self, text: str) -> Optional[str]:
        """Show *text* and block for one line; ``None`` once closed."""

    def say(self, text: str) -> None:
        """Show an informational message."""


class ConsoleChannel:
    """Channel over the process's stdin/stdout."""

    def prompt(self, text: str) -> Optional[str]:
        try:
            return input(text)
        except (EOFError, KeyboardInterrupt):
            print()
            return None

    def say(self, text: str) -> None:
        print(text, flush=True)


class DecisionPolicy:
    """Base policy; subclasses implement :meth:`decide`."""

    interactive = False

    def decide(self, match: Match) -> Decision:
        raise NotImplementedError

    def reset_scope(self) -> None:
        """Forget any per-file override.  Called before each file."""

    def request_replacement(self, match: Match) -> Optional[str]:
        """Ask for hand-written replacement text after an EDIT decision."""
        raise NotImplementedError(f"{type(self).__name__} cannot edit")

    def notify(self, text: str) -> None:
        """Report a status message back to the operator, if there is one."""

    def clone(self) -> "DecisionPolicy":
        """Return a private copy for another worker."""
        return copy.copy(self)


class FixedPolicy(DecisionPolicy):
    """Return the same decision for every match."""

    def __init__(self, decision: Decision) -> None:
        if decision is Decision.EDIT:
            raise ValueError("a fixed policy cannot edit replacements")
        self.decision = decision

    def decide(self, match: Match) -> Decision:
        return self.decision

    def __repr__(self) -> str:
        return f"FixedPolicy({self.decision.name})"


_ANSWERS = {
    "y": (Decision.ACCEPT, None),
    "n": (Decision.IGNORE, None),
    "q": (Decision.TERMINATE, None),
    "a": (Decision.ACCEPT, DecisionScope.FORCE_ACCEPT),
    "d": (Decision.IGNORE, DecisionScope.FORCE_IGNORE),
    "e": (Decision.EDIT, None),
}


class InteractivePolicy(DecisionPolicy):
    """Prompt the operator for every match not covered by the file scope."""

    interactive = True

    def __init__(self, channel: Optional[Channel] = None) -> None:
        self.channel = channel or ConsoleChannel()
        self.scope = DecisionScope.UNSET

    def reset_scope(self) -> None:
        self.scope = DecisionScope.UNSET

    def decide(self, match: Match) -> Decision:
        if self.scope is DecisionScope.FORCE_ACCEPT:
            return Decision.ACCEPT
        if self.scope is DecisionScope.FORCE_IGNORE:
            return Decision.IGNORE

        while True:
            answer = self.channel.prompt(DECISION_PROMPT)
            if answer is None:
                logger.debug("Prompt channel closed at line %d", match.number)
                return Decision.TERMINATE

            token = answer.strip().lower()
            if token not in _ANSWERS:
                # '?' and anything unrecognised both get the help text
                self.channel.say(HELP_TEXT)
                continue

            decision, scope = _ANSWERS[token]
            if scope is not None:
                self.scope = scope
            return decision

    def request_replacement(self, match: Match) -> Optional[str]:
        return self.channel.prompt(EDIT_PROMPT)

    def notify(self, text: str) -> None:
        self.channel.say(text)

    def clone(self) -> "InteractivePolicy":
        twin = copy.copy(self)
        twin.scope = DecisionScope.UNSET
        return twin
