"""
fnr — recursively find and replace. Like sed, but memorable.

Public API for library usage::

    from fnr import PatternMatcher, FixedPolicy, Decision, FindAndReplacer, walk_files

    matcher = PatternMatcher(r"(foo)bar", "$1baz")
    replacer = FindAndReplacer(matcher, FixedPolicy(Decision.ACCEPT), writes_enabled=True)
    replacer.run(walk_files(["src"]))
"""

from .dispatcher import FindAndReplacer, RunResult
from .editing.decision import Decision, FixedPolicy, InteractivePolicy
from .search import LineSearcher, PatternMatcher
from .walker import PathFilter, walk_files

__all__ = [
    "FindAndReplacer", "RunResult",
    "Decision", "FixedPolicy", "InteractivePolicy",
    "LineSearcher", "PatternMatcher",
    "PathFilter", "walk_files",
]
