"""
Replacement orchestrator — drives one file from its collected matches to
the rewritten file.

For every match it computes the proposed line, shows it, asks the decision
policy and records accepted replacements.  The file is rewritten once, at
the end, and only if the run was not terminated while the file was open.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from .decision import Decision, DecisionPolicy
from .rewriter import FileRewriter
from .types import Match, MatchReplacement, split_terminator

if TYPE_CHECKING:
    from ..search import PatternMatcher

logger = logging.getLogger(__name__)


@dataclass
class FileOutcome:
    """What happened to one file."""
    matches: int = 0
    applied: int = 0
    halt: bool = False


class ReplacementOrchestrator:
    """Per-file driver: matches → decisions → one atomic rewrite."""

    def __init__(
        self,
        matcher: PatternMatcher,
        policy: DecisionPolicy,
        rewriter: FileRewriter | None = None,
    ) -> None:
        self.matcher = matcher
        self.policy = policy
        self.rewriter = rewriter or FileRewriter()

    def process(self, path: str, matches: Iterable[Match], printer) -> FileOutcome:
        """Handle all matches of *path*.

        Returns a :class:`FileOutcome`; ``halt`` is set when the operator
        terminated the run, in which case nothing is written for this file.
        """
        matches = list(matches)
        if not matches:
            return FileOutcome()

        printer.display_header(path, len(matches))
        self.policy.reset_scope()

        outcome = FileOutcome(matches=len(matches))
        replacements: list[MatchReplacement] = []

        for m in matches:
            proposed = self.matcher.replace_line(m.line.text)
            printer.display_match(path, m, proposed)

            decision = self.policy.decide(m)
            if decision is Decision.IGNORE:
                continue
            if decision is Decision.TERMINATE:
                self.policy.notify("exiting!")
                logger.info("Terminated at %s:%d; %d decided replacement(s) dropped",
                            path, m.number, len(replacements))
                outcome.halt = True
                return outcome
            if decision is Decision.EDIT:
                edited = self.policy.request_replacement(m)
                if edited is None:
                    self.policy.notify("exiting!")
                    outcome.halt = True
                    return outcome
                if not edited:
                    self.policy.notify("... skipped ...")
                    continue
                proposed = edited + split_terminator(m.line.text)[1]
                printer.display_match(path, m, proposed)
                self.policy.notify("--")

            replacements.append(MatchReplacement(source=m, replacement_text=proposed))

        if replacements:
            outcome.applied = self.rewriter.apply(path, replacements)
            logger.info("%s: applied %d of %d replacement(s)",
                        path, outcome.applied, len(matches))
        return outcome
