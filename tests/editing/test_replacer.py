"""Tests for the ReplacementOrchestrator."""

import io
from unittest.mock import MagicMock

import pytest

from fnr.cli_display import MatchPrinter
from fnr.editing.collector import MatchCollector
from fnr.editing.decision import Decision, FixedPolicy, InteractivePolicy
from fnr.editing.replacer import ReplacementOrchestrator
from fnr.editing.rewriter import FileRewriter
from fnr.search import LineSearcher, PatternMatcher

SOURCE = """\
def foo():
    return foo_bar()

x = foo
y = 1
z = foo
"""


class ScriptedChannel:
    def __init__(self, answers):
        self.answers = list(answers)
        self.messages = []

    def prompt(self, text):
        return self.answers.pop(0) if self.answers else None

    def say(self, text):
        self.messages.append(text)


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "mod.py"
    path.write_text(SOURCE)
    return str(path)


def _matches(path, matcher, context=1):
    searcher = LineSearcher(matcher, context, context)
    return list(MatchCollector().collect(searcher.search_path(path)))


def _printer():
    return MatchPrinter(io.StringIO(), "full")


def _read(path):
    with open(path) as f:
        return f.read()


class TestProcess:
    def test_accept_all(self, source_file):
        matcher = PatternMatcher("foo", "qux", case_sensitive=True)
        orchestrator = ReplacementOrchestrator(matcher, FixedPolicy(Decision.ACCEPT))
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())

        assert outcome.matches == 4
        assert outcome.applied == 4
        assert outcome.halt is False
        assert _read(source_file) == SOURCE.replace("foo", "qux")

    def test_preview_does_not_write(self, source_file):
        matcher = PatternMatcher("foo", "qux")
        rewriter = MagicMock(spec=FileRewriter)
        orchestrator = ReplacementOrchestrator(
            matcher, FixedPolicy(Decision.IGNORE), rewriter)
        printer = _printer()
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), printer)

        assert outcome.applied == 0
        rewriter.apply.assert_not_called()
        assert _read(source_file) == SOURCE
        assert "+   4 x = qux" in printer.stream.getvalue()

    def test_no_matches_is_noop(self, source_file):
        printer = MagicMock()
        orchestrator = ReplacementOrchestrator(
            PatternMatcher("nothing", "x"), FixedPolicy(Decision.ACCEPT))
        outcome = orchestrator.process(source_file, [], printer)
        assert outcome.matches == 0
        printer.display_header.assert_not_called()

    def test_capture_groups(self, source_file):
        matcher = PatternMatcher(r"(\w+) = foo", "$1 = bar_$1")
        orchestrator = ReplacementOrchestrator(matcher, FixedPolicy(Decision.ACCEPT))
        orchestrator.process(source_file, _matches(source_file, matcher), _printer())
        content = _read(source_file)
        assert "x = bar_x\n" in content
        assert "z = bar_z\n" in content

    def test_interactive_mixed_answers(self, source_file):
        matcher = PatternMatcher("foo", "qux")
        channel = ScriptedChannel(["n", "y", "d"])
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(channel))
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())

        assert outcome.applied == 1
        lines = _read(source_file).splitlines()
        assert lines[0] == "def foo():"
        assert lines[1] == "    return qux_bar()"
        assert lines[3] == "x = foo"
        assert lines[5] == "z = foo"

    def test_edit_uses_typed_text(self, source_file):
        matcher = PatternMatcher("^y = 1$", "unused")
        channel = ScriptedChannel(["e", "y = 2"])
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(channel))
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())

        assert outcome.applied == 1
        assert "y = 2\n" in _read(source_file)
        assert len(_read(source_file).splitlines()) == len(SOURCE.splitlines())

    def test_edit_empty_skips(self, source_file):
        matcher = PatternMatcher("^y = 1$", "unused")
        channel = ScriptedChannel(["e", ""])
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(channel))
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())

        assert outcome.applied == 0
        assert outcome.halt is False
        assert "... skipped ..." in channel.messages
        assert _read(source_file) == SOURCE

    def test_terminate_discards_decided_replacements(self, source_file):
        matcher = PatternMatcher("foo", "qux")
        channel = ScriptedChannel(["y", "y", "q"])
        rewriter = MagicMock(spec=FileRewriter)
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(channel), rewriter)
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())

        assert outcome.halt is True
        assert outcome.applied == 0
        rewriter.apply.assert_not_called()
        assert "exiting!" in channel.messages

    def test_closed_channel_halts(self, source_file):
        matcher = PatternMatcher("foo", "qux")
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(ScriptedChannel([])))
        outcome = orchestrator.process(source_file, _matches(source_file, matcher), _printer())
        assert outcome.halt is True
        assert _read(source_file) == SOURCE

    def test_scope_reset_between_files(self, tmp_path):
        first = tmp_path / "a.txt"
        second = tmp_path / "b.txt"
        first.write_text("foo\nfoo\n")
        second.write_text("foo\nfoo\n")
        matcher = PatternMatcher("foo", "bar")
        channel = ScriptedChannel(["a", "n", "n"])
        orchestrator = ReplacementOrchestrator(matcher, InteractivePolicy(channel))

        orchestrator.process(str(first), _matches(str(first), matcher), _printer())
        orchestrator.process(str(second), _matches(str(second), matcher), _printer())

        assert first.read_text() == "bar\nbar\n"
        assert second.read_text() == "foo\nfoo\n"
        assert channel.answers == []
