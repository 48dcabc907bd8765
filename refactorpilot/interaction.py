"""Confirmation and model-selection strategies injected into the pipeline."""

from enum import Enum
from typing import Any, Iterable, List, Optional, Protocol

import click


class Decision(Enum):
    APPLY = "apply"
    SKIP = "skip"


class Decider(Protocol):
    def decide(self, item: Any) -> Decision:
        ...


class ModelSelector(Protocol):
    def select_models(self) -> List[str]:
        ...


SKIP_MODELS = "skip"


def parse_answer(answer: str) -> Decision:
    """Map a prompt answer to a decision: ``y``/``yes`` apply, anything else skips."""
    return Decision.APPLY if answer.strip().lower() in ("y", "yes") else Decision.SKIP


def describe_item(item: Any) -> str:
    """One-line description of a refactoring for prompts and logs."""
    origin = getattr(item, "origin", None)
    if origin is not None:
        opp = origin.opportunity
        return f"{opp.file}:{opp.line} - {opp.description} (Impact: {origin.total:.0f})"

    kind = getattr(getattr(item, "type", None), "value", type(item).__name__)
    if kind == "rename":
        return f"rename {item.old_name} -> {item.new_name} in {len(item.files)} file(s)"
    if kind == "extract":
        return f"extract {item.name} from {item.source}:{item.start_line}-{item.end_line}"
    if kind == "split":
        return f"split {item.source} into {len(item.targets)} file(s)"
    return kind


class AutoApproveDecider:
    """Headless decider: applies everything."""

    def decide(self, item: Any) -> Decision:
        return Decision.APPLY


class PromptDecider:
    """Asks on the terminal before each refactoring."""

    def __init__(self, prompt=click.prompt):
        self.prompt = prompt

    def decide(self, item: Any) -> Decision:
        answer = self.prompt(
            f"Apply {describe_item(item)}?",
            type=click.Choice(["y", "n", "skip"], case_sensitive=False),
            default="y",
        )
        return parse_answer(answer)


class ScriptedDecider:
    """Replays canned answers; once exhausted, falls back to ``default``."""

    def __init__(self, answers: Iterable[Any] = (), default: Decision = Decision.SKIP):
        self.answers = list(answers)
        self.default = default
        self.asked: List[Any] = []

    def decide(self, item: Any) -> Decision:
        self.asked.append(item)
        if not self.answers:
            return self.default
        answer = self.answers.pop(0)
        return answer if isinstance(answer, Decision) else parse_answer(str(answer))


class StaticModelSelector:
    """Always returns the configured model list."""

    def __init__(self, models: Optional[List[str]] = None):
        self.models = list(models) if models is not None else ["default"]

    def select_models(self) -> List[str]:
        return list(self.models)


class PromptModelSelector:
    """Lets the user pick which models run semantic analysis."""

    def __init__(self, available: Optional[List[str]] = None, prompt=click.prompt):
        self.available = available or ["default"]
        self.prompt = prompt

    def select_models(self) -> List[str]:
        choices = self.available + [SKIP_MODELS]
        answer = self.prompt(
            f"Models for semantic analysis (comma separated: {', '.join(choices)})",
            default=",".join(self.available),
        )
        selected = [name.strip() for name in answer.split(",") if name.strip()]
        if not selected or SKIP_MODELS in selected:
            return [SKIP_MODELS]
        return [name for name in selected if name in self.available] or [SKIP_MODELS]
