"""Calculator controller: owns the state and carries out reducer effects."""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any

from .delegate import Delegate, StaticDelegate
from .history import HistoryStore
from .logging_config import get_logger
from .state import (
    Append,
    CalculatorState,
    CallDelegate,
    Clear,
    Commit,
    DelegateCompleted,
    DelegateToAI,
    Delete,
    Effect,
    Intent,
    RecordHistory,
    SelectHistory,
    SetMode,
    SetPrompt,
    reduce,
)
from .types import CalculatorMode, HistoryEntry

logger = get_logger("controller")


class Calculator:
    """Single owner of one CalculatorState, its history and its AI delegate.

    Synchronous intents go through ``dispatch``; ``delegate_to_ai`` is a
    coroutine because it waits on the delegate.
    """

    def __init__(
        self,
        history: HistoryStore | None = None,
        delegate: Delegate | None = None,
        state: CalculatorState | None = None,
    ):
        self.history = history if history is not None else HistoryStore()
        self.delegate = delegate if delegate is not None else StaticDelegate()
        self.state = state if state is not None else CalculatorState()

    def dispatch(self, intent: Intent) -> list[Effect]:
        """Apply an intent, run its history effects, return any pending effects."""
        self.state, effects = reduce(self.state, intent)
        pending: list[Effect] = []
        for effect in effects:
            if isinstance(effect, RecordHistory):
                self._record(effect)
            else:
                pending.append(effect)
        return pending

    def _record(self, effect: RecordHistory) -> HistoryEntry:
        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            expression=effect.expression,
            result=effect.result,
            timestamp=int(time.time() * 1000),
            type=effect.type,
            explanation=effect.explanation,
        )
        self.history.record(entry)
        logger.debug(f"Recorded {entry.type} history entry {entry.id}")
        return entry

    def append(self, token: str) -> None:
        self.dispatch(Append(token))

    def delete(self) -> None:
        self.dispatch(Delete())

    def clear(self) -> None:
        self.dispatch(Clear())

    def commit(self) -> str:
        """Commit the expression and return the committed result."""
        self.dispatch(Commit())
        return self.state.committed_result

    def set_mode(self, mode: CalculatorMode) -> None:
        self.dispatch(SetMode(mode))

    def set_prompt(self, text: str) -> None:
        self.dispatch(SetPrompt(text))

    async def delegate_to_ai(self, prompt: str) -> str:
        """Send a free-text question to the delegate and apply its answer.

        Blank prompts and prompts sent while another delegation is in flight
        leave the state unchanged and make no delegate call.

        Returns:
            The committed result after the call (unchanged if ignored)
        """
        pending = self.dispatch(DelegateToAI(prompt))
        for effect in pending:
            if isinstance(effect, CallDelegate):
                response = await asyncio.to_thread(self.delegate.solve, effect.prompt)
                self.dispatch(DelegateCompleted(effect.prompt, response))
        return self.state.committed_result

    def select_history(self, entry_id: str) -> HistoryEntry | None:
        """Load a history entry back into the display; None if the id is unknown."""
        entry = self.history.select(entry_id)
        if entry is None:
            logger.debug(f"No history entry with id {entry_id}")
            return None
        self.dispatch(SelectHistory(entry))
        return entry

    def clear_history(self) -> None:
        self.history.clear()

    def snapshot(self) -> dict[str, Any]:
        return self.state.to_dict()
