"""Find-and-replace editing — match collection, decisions and rewrites."""

from .types import Line, Match, MatchReplacement, LineEvent, EventKind
from .collector import MatchCollector, CollectorState, Phase, transition
from .decision import (
    Decision, DecisionScope, DecisionPolicy, FixedPolicy,
    InteractivePolicy, ConsoleChannel,
)
from .rewriter import FileRewriter
from .replacer import ReplacementOrchestrator, FileOutcome

__all__ = [
    "Line", "Match", "MatchReplacement", "LineEvent", "EventKind",
    "MatchCollector", "CollectorState", "Phase", "transition",
    "Decision", "DecisionScope", "DecisionPolicy", "FixedPolicy",
    "InteractivePolicy", "ConsoleChannel",
    "FileRewriter",
    "ReplacementOrchestrator", "FileOutcome",
]
