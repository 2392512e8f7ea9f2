"""Input state machine.

The calculator state is an immutable ``CalculatorState``. Every user intent
is applied by ``reduce(state, intent)``, which returns the next state and a
list of effects for the caller to carry out (record a history entry, call
the AI delegate). ``reduce`` itself performs no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Union

from .config import DEFAULT_MODE, ERROR_SENTINEL, MODES, OPERATORS, PREVIEW_BLOCKERS
from .evaluator import commit_value, preview
from .logging_config import get_logger
from .types import AIResponse, CalculatorMode, EntryType, HistoryEntry

logger = get_logger("state")


@dataclass(frozen=True)
class CalculatorState:
    expression: str = ""
    committed_result: str = ""
    preview_result: str = ""
    mode: CalculatorMode = DEFAULT_MODE
    is_delegating: bool = False
    prompt: str = ""  # AI text-input buffer

    def to_dict(self) -> dict[str, Any]:
        """Renderable state for a presentation layer."""
        return {
            "expression": self.expression,
            "committedResult": self.committed_result,
            "previewResult": self.preview_result,
            "isDelegating": self.is_delegating,
            "mode": self.mode,
        }


# Intents


@dataclass(frozen=True)
class Append:
    token: str


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Commit:
    pass


@dataclass(frozen=True)
class DelegateToAI:
    prompt: str


@dataclass(frozen=True)
class DelegateCompleted:
    prompt: str
    response: AIResponse


@dataclass(frozen=True)
class SetMode:
    mode: CalculatorMode


@dataclass(frozen=True)
class SetPrompt:
    text: str


@dataclass(frozen=True)
class SelectHistory:
    entry: HistoryEntry


Intent = Union[
    Append,
    Delete,
    Clear,
    Commit,
    DelegateToAI,
    DelegateCompleted,
    SetMode,
    SetPrompt,
    SelectHistory,
]


# Effects


@dataclass(frozen=True)
class RecordHistory:
    """Append a history entry; id and timestamp are assigned when recorded."""

    expression: str
    result: str
    type: EntryType = "manual"
    explanation: str | None = None


@dataclass(frozen=True)
class CallDelegate:
    prompt: str


Effect = Union[RecordHistory, CallDelegate]


def compute_preview(expression: str, is_delegating: bool = False) -> str:
    """Live preview of an in-progress expression, or ``""``."""
    if not expression or is_delegating:
        return ""
    stripped = expression.strip()
    if not stripped or stripped[-1] in PREVIEW_BLOCKERS:
        return ""
    return preview(expression)


def _refresh_preview(state: CalculatorState) -> CalculatorState:
    return replace(
        state, preview_result=compute_preview(state.expression, state.is_delegating)
    )


def _clear(state: CalculatorState) -> CalculatorState:
    return replace(state, expression="", committed_result="", preview_result="")


def _append(state: CalculatorState, token: str) -> CalculatorState:
    if state.committed_result:
        if token in OPERATORS:
            expression = state.committed_result + token
        else:
            expression = token
        return _refresh_preview(
            replace(state, expression=expression, committed_result="")
        )
    return _refresh_preview(replace(state, expression=state.expression + token))


def _delete(state: CalculatorState) -> CalculatorState:
    if state.committed_result:
        return _clear(state)
    if not state.expression:
        return state
    return _refresh_preview(replace(state, expression=state.expression[:-1]))


def _commit(state: CalculatorState) -> tuple[CalculatorState, list[Effect]]:
    if not state.expression or state.committed_result:
        return state, []
    value = commit_value(state.expression)
    if value == ERROR_SENTINEL:
        return replace(state, committed_result=ERROR_SENTINEL), []
    effect = RecordHistory(expression=state.expression, result=value, type="manual")
    return replace(state, committed_result=value), [effect]


def _delegate(
    state: CalculatorState, prompt: str
) -> tuple[CalculatorState, list[Effect]]:
    if not prompt.strip():
        return state, []
    if state.is_delegating:
        logger.warning("Delegation already in progress, ignoring prompt %r", prompt)
        return state, []
    new_state = replace(
        state,
        is_delegating=True,
        mode="ai",
        prompt=prompt,
        expression=prompt,
        committed_result="",
        preview_result="",
    )
    return new_state, [CallDelegate(prompt=prompt)]


def _delegate_completed(
    state: CalculatorState, prompt: str, response: AIResponse
) -> tuple[CalculatorState, list[Effect]]:
    if response.is_error:
        logger.info("AI delegate reported an error: %s", response.steps)
        done = replace(state, is_delegating=False, committed_result=ERROR_SENTINEL)
        return _refresh_preview(done), []
    effect = RecordHistory(
        expression=prompt,
        result=response.result,
        type="ai",
        explanation=response.steps,
    )
    done = replace(
        state, is_delegating=False, committed_result=response.result, prompt=""
    )
    return _refresh_preview(done), [effect]


def reduce(state: CalculatorState, intent: Intent) -> tuple[CalculatorState, list[Effect]]:
    """Apply one intent.

    Args:
        state: Current state
        intent: User intent or delegate completion

    Returns:
        Tuple of (next_state, effects)

    Raises:
        ValueError: If SetMode names an unknown mode
        TypeError: If the intent type is not recognized
    """
    if isinstance(intent, Append):
        return _append(state, intent.token), []
    if isinstance(intent, Delete):
        return _delete(state), []
    if isinstance(intent, Clear):
        return _clear(state), []
    if isinstance(intent, Commit):
        return _commit(state)
    if isinstance(intent, DelegateToAI):
        return _delegate(state, intent.prompt)
    if isinstance(intent, DelegateCompleted):
        return _delegate_completed(state, intent.prompt, intent.response)
    if isinstance(intent, SetMode):
        if intent.mode not in MODES:
            raise ValueError(f"Unknown calculator mode: {intent.mode!r}")
        return replace(state, mode=intent.mode), []
    if isinstance(intent, SetPrompt):
        return replace(state, prompt=intent.text), []
    if isinstance(intent, SelectHistory):
        entry = intent.entry
        selected = replace(
            state, expression=entry.expression, committed_result=entry.result
        )
        if entry.type == "ai":
            selected = replace(selected, mode="ai")
        return _refresh_preview(selected), []
    raise TypeError(f"Unknown intent: {intent!r}")
