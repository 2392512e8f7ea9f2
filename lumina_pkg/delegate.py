"""AI delegate: answers free-text math questions with a structured result.

A delegate exposes ``solve(prompt) -> AIResponse`` and must never raise;
every transport or parsing failure is reported as an error response.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from ollama import Client

from .config import AI_MODEL, OLLAMA_HOST
from .logging_config import get_logger
from .types import AIResponse

logger = get_logger("delegate")

SYSTEM_INSTRUCTION = """You are an advanced mathematical assistant designed to act as a calculator backend.
Analyze the user's natural language input or complex mathematical expression.
1. Solve the problem accurately.
2. Provide the numeric result (or short string result if it's not purely numeric).
3. Provide a brief, step-by-step explanation or the formula used.
4. If the input is invalid or cannot be solved, set isError to true."""

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "result": {"type": "string", "description": "The final answer."},
        "steps": {
            "type": "string",
            "description": "Brief explanation of steps or formula.",
        },
        "isError": {
            "type": "boolean",
            "description": "True if the request could not be processed.",
        },
    },
    "required": ["result", "steps", "isError"],
}

FAILURE_RESPONSE = AIResponse(
    result="Error", steps="Failed to connect to AI service.", is_error=True
)


class Delegate(Protocol):
    def solve(self, prompt: str) -> AIResponse: ...


def parse_ai_response(text: str | None) -> AIResponse:
    """Validate a model reply against RESPONSE_SCHEMA.

    Raises:
        ValueError: If the reply is empty, not JSON, or has the wrong shape
    """
    if not text:
        raise ValueError("No response from AI")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("AI response is not a JSON object")
    result = data.get("result")
    steps = data.get("steps")
    is_error = data.get("isError")
    if isinstance(result, (int, float)) and not isinstance(result, bool):
        result = str(result)
    if not isinstance(result, str) or not isinstance(steps, str):
        raise ValueError("AI response must contain string 'result' and 'steps'")
    if not isinstance(is_error, bool):
        raise ValueError("AI response must contain boolean 'isError'")
    return AIResponse(result=result, steps=steps, is_error=is_error)


class OllamaDelegate:
    """Delegate backed by a model served through Ollama."""

    def __init__(
        self,
        model: str = AI_MODEL,
        host: str = OLLAMA_HOST,
        client: Any | None = None,
    ):
        self.model = model
        self.client = client if client is not None else Client(host=host)

    def solve(self, prompt: str) -> AIResponse:
        try:
            response = self.client.chat(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {"role": "user", "content": prompt},
                ],
                format=RESPONSE_SCHEMA,
                stream=False,
            )
            return parse_ai_response(response["message"]["content"])
        except Exception:
            logger.exception("AI delegate request failed")
            return FAILURE_RESPONSE


class StaticDelegate:
    """Delegate returning canned answers, for tests and offline sessions.

    Answers are looked up by exact prompt; unknown prompts get ``default``.
    """

    def __init__(
        self,
        answers: dict[str, AIResponse] | None = None,
        default: AIResponse = FAILURE_RESPONSE,
    ):
        self.answers = dict(answers or {})
        self.default = default
        self.calls: list[str] = []

    def solve(self, prompt: str) -> AIResponse:
        self.calls.append(prompt)
        return self.answers.get(prompt, self.default)
