"""Tests for fixed and interactive decision policies."""

import pytest

from fnr.editing.decision import (
    Decision, DecisionScope, FixedPolicy, HELP_TEXT, InteractivePolicy,
)
from fnr.editing.types import Line, Match


class ScriptedChannel:
    """Channel answering from a fixed script; ``None`` once exhausted."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []
        self.messages = []

    def prompt(self, text):
        self.prompts.append(text)
        if not self.answers:
            return None
        return self.answers.pop(0)

    def say(self, text):
        self.messages.append(text)


def _match(n=1):
    return Match(Line(n, "foo\n"))


class TestFixedPolicy:
    def test_returns_constant(self):
        policy = FixedPolicy(Decision.ACCEPT)
        assert all(policy.decide(_match(n)) is Decision.ACCEPT for n in range(1, 5))

    def test_ignore(self):
        assert FixedPolicy(Decision.IGNORE).decide(_match()) is Decision.IGNORE

    def test_rejects_edit(self):
        with pytest.raises(ValueError):
            FixedPolicy(Decision.EDIT)

    def test_clone_is_independent(self):
        policy = FixedPolicy(Decision.ACCEPT)
        twin = policy.clone()
        assert twin is not policy
        assert twin.decide(_match()) is Decision.ACCEPT

    def test_not_interactive(self):
        assert FixedPolicy(Decision.IGNORE).interactive is False


class TestInteractivePolicy:
    @pytest.mark.parametrize("answer,expected", [
        ("y", Decision.ACCEPT),
        ("n", Decision.IGNORE),
        ("q", Decision.TERMINATE),
        ("e", Decision.EDIT),
        ("  Y \n", Decision.ACCEPT),
    ])
    def test_single_answers(self, answer, expected):
        policy = InteractivePolicy(ScriptedChannel([answer]))
        assert policy.decide(_match()) is expected
        assert policy.scope is DecisionScope.UNSET

    def test_accept_remaining(self):
        channel = ScriptedChannel(["a"])
        policy = InteractivePolicy(channel)
        assert policy.decide(_match(1)) is Decision.ACCEPT
        assert policy.scope is DecisionScope.FORCE_ACCEPT

        # No further prompts in the same file
        assert policy.decide(_match(2)) is Decision.ACCEPT
        assert policy.decide(_match(3)) is Decision.ACCEPT
        assert len(channel.prompts) == 1

    def test_ignore_remaining(self):
        channel = ScriptedChannel(["d"])
        policy = InteractivePolicy(channel)
        assert policy.decide(_match(1)) is Decision.IGNORE
        assert policy.decide(_match(2)) is Decision.IGNORE
        assert len(channel.prompts) == 1

    def test_scope_resets_for_next_file(self):
        channel = ScriptedChannel(["a", "n"])
        policy = InteractivePolicy(channel)
        policy.decide(_match(1))
        policy.reset_scope()
        assert policy.scope is DecisionScope.UNSET
        assert policy.decide(_match(1)) is Decision.IGNORE
        assert len(channel.prompts) == 2

    def test_help_then_answer(self):
        channel = ScriptedChannel(["?", "y"])
        policy = InteractivePolicy(channel)
        assert policy.decide(_match()) is Decision.ACCEPT
        assert channel.messages == [HELP_TEXT]
        assert len(channel.prompts) == 2

    def test_unrecognized_input_reprompts(self):
        channel = ScriptedChannel(["maybe", "", "n"])
        policy = InteractivePolicy(channel)
        assert policy.decide(_match()) is Decision.IGNORE
        assert len(channel.prompts) == 3

    def test_closed_channel_terminates(self):
        policy = InteractivePolicy(ScriptedChannel([]))
        assert policy.decide(_match()) is Decision.TERMINATE

    def test_request_replacement(self):
        channel = ScriptedChannel(["new text"])
        policy = InteractivePolicy(channel)
        assert policy.request_replacement(_match()) == "new text"
        assert policy.request_replacement(_match()) is None

    def test_clone_has_own_scope(self):
        policy = InteractivePolicy(ScriptedChannel(["a"]))
        policy.decide(_match())
        twin = policy.clone()
        assert twin.scope is DecisionScope.UNSET
        assert policy.scope is DecisionScope.FORCE_ACCEPT
