"""Tests for confirmation and model-selection strategies."""

import pytest
from unittest.mock import Mock

from refactorpilot.interaction import (
    SKIP_MODELS,
    AutoApproveDecider,
    Decision,
    PromptDecider,
    PromptModelSelector,
    ScriptedDecider,
    StaticModelSelector,
    describe_item,
    parse_answer,
)
from refactorpilot.models import (
    ExtractRefactoring,
    Opportunity,
    OpportunityType,
    RenameRefactoring,
    ScoredOpportunity,
)


@pytest.mark.parametrize("answer,decision", [
    ("y", Decision.APPLY),
    ("YES", Decision.APPLY),
    (" yes ", Decision.APPLY),
    ("n", Decision.SKIP),
    ("skip", Decision.SKIP),
    ("", Decision.SKIP),
])
def test_parse_answer(answer, decision):
    assert parse_answer(answer) is decision


class TestDeciders:
    """Test the Decider implementations."""

    def test_auto_approve(self):
        assert AutoApproveDecider().decide(object()) is Decision.APPLY

    def test_prompt_decider_uses_prompt(self):
        prompt = Mock(return_value="n")
        decider = PromptDecider(prompt=prompt)

        assert decider.decide(RenameRefactoring("a", "b", ["x.py"])) is Decision.SKIP
        assert "rename a -> b" in prompt.call_args.args[0]

    def test_scripted_decider(self):
        decider = ScriptedDecider(["y", Decision.SKIP])

        assert decider.decide("first") is Decision.APPLY
        assert decider.decide("second") is Decision.SKIP
        assert decider.decide("third") is Decision.SKIP
        assert decider.asked == ["first", "second", "third"]

    def test_scripted_decider_default(self):
        decider = ScriptedDecider(default=Decision.APPLY)

        assert decider.decide("anything") is Decision.APPLY


class TestModelSelectors:
    """Test the ModelSelector implementations."""

    def test_static(self):
        assert StaticModelSelector(["gpt", "local"]).select_models() == ["gpt", "local"]
        assert StaticModelSelector().select_models() == ["default"]

    def test_prompt_selects_known_models(self):
        selector = PromptModelSelector(["a", "b"], prompt=Mock(return_value="b, unknown"))

        assert selector.select_models() == ["b"]

    def test_prompt_skip(self):
        selector = PromptModelSelector(["a"], prompt=Mock(return_value="skip"))

        assert selector.select_models() == [SKIP_MODELS]

    def test_prompt_nothing_known(self):
        selector = PromptModelSelector(["a"], prompt=Mock(return_value="zzz"))

        assert selector.select_models() == [SKIP_MODELS]


def test_describe_item_with_origin():
    scored = ScoredOpportunity(
        Opportunity(OpportunityType.COMPLEXITY, "a.py", 4, "High complexity (12) in f"),
        {"total": 82.4},
    )
    refactoring = ExtractRefactoring("a.py", "helper", 4, 9, "helpers.py", origin=scored)

    assert describe_item(refactoring) == "a.py:4 - High complexity (12) in f (Impact: 82)"


def test_describe_item_without_origin():
    assert describe_item(ExtractRefactoring("a.py", "helper", 4, 9, "h.py")) == "extract helper from a.py:4-9"
