"""Type definitions and result dataclasses for consistent API responses."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal

CalculatorMode = Literal["standard", "scientific", "ai"]
EntryType = Literal["manual", "ai"]


@dataclass
class EvalResult:
    """Result of evaluating a calculator expression."""

    ok: bool
    result: str | None = None
    error: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.error is not None:
            result_dict["error"] = self.error
        if self.code is not None:
            result_dict["code"] = self.code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, code={self.code!r}, error={self.error!r})"
        return f"EvalResult(ok=True, result={self.result!r})"


@dataclass(frozen=True)
class AIResponse:
    """Structured answer returned by an AI delegate."""

    result: str
    steps: str
    is_error: bool

    def to_dict(self) -> dict[str, Any]:
        return {"result": self.result, "steps": self.steps, "isError": self.is_error}


@dataclass(frozen=True)
class HistoryEntry:
    """A committed calculation. Never mutated once created."""

    id: str
    expression: str
    result: str
    timestamp: int  # milliseconds since the epoch
    type: EntryType = "manual"
    explanation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "id": self.id,
            "expression": self.expression,
            "result": self.result,
            "timestamp": self.timestamp,
            "type": self.type,
        }
        if self.explanation is not None:
            data["explanation"] = self.explanation
        return data

    @classmethod
    def from_dict(cls, data: Any) -> HistoryEntry:
        """Build an entry from its serialized form.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"History entry must be an object, got {type(data).__name__}")
        for key in ("id", "expression", "result"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"History entry field '{key}' must be a string")
        timestamp = data.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ValueError("History entry field 'timestamp' must be a number")
        if isinstance(timestamp, float) and not math.isfinite(timestamp):
            raise ValueError("History entry field 'timestamp' must be finite")
        entry_type = data.get("type", "manual")
        if entry_type not in ("manual", "ai"):
            raise ValueError(f"Unknown history entry type: {entry_type!r}")
        explanation = data.get("explanation")
        if explanation is not None and not isinstance(explanation, str):
            raise ValueError("History entry field 'explanation' must be a string")
        return cls(
            id=data["id"],
            expression=data["expression"],
            result=data["result"],
            timestamp=int(timestamp),
            type=entry_type,
            explanation=explanation,
        )


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when parsing fails."""

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
