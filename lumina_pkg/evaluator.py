"""Expression evaluation and result shaping.

``evaluate_expression`` returns a structured ``EvalResult``; ``evaluate``
projects it onto the string protocol used by the state machine:

- a formatted number on success
- ``ERROR_SENTINEL`` ("Error") when the value is infinite, NaN or complex
- ``""`` when the input is malformed
"""

from __future__ import annotations

import math

import sympy as sp

from .config import ERROR_SENTINEL, RESULT_DECIMALS, WORKING_PRECISION
from .logging_config import get_logger
from .parser import format_number, parse_expression, round_half_up
from .types import EvalResult, ParseError, ValidationError

logger = get_logger("evaluator")

NON_FINITE = "NON_FINITE"


def _to_finite_float(expr: sp.Basic) -> float | None:
    """Numerically evaluate a SymPy expression, or None if not a finite real."""
    value = sp.N(expr, WORKING_PRECISION)
    if value.has(sp.zoo, sp.nan, sp.oo, -sp.oo) or value.has(sp.AccumBounds):
        return None
    if not value.is_number or value.is_real is not True:
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def _format_evaluation_result(number: float) -> str:
    """Round to RESULT_DECIMALS places and render canonically.

    This ensures results like sin(π) -> "0" and 0.1+0.2 -> "0.3"
    instead of exposing floating point noise.
    """
    return format_number(round_half_up(number, RESULT_DECIMALS))


def evaluate_expression(expression: str) -> EvalResult:
    """Evaluate calculator input.

    Args:
        expression: Display-oriented input (e.g. "2×3", "sqrt(16)", "50%")

    Returns:
        EvalResult with the formatted number, or an error code
    """
    try:
        expr = parse_expression(expression)
        number = _to_finite_float(expr)
    except (ValidationError, ParseError) as e:
        return EvalResult(ok=False, error=str(e), code=e.code)
    except (TypeError, ValueError, ArithmeticError, RecursionError) as e:
        logger.debug("Evaluation of %r failed: %s", expression, e)
        return EvalResult(ok=False, error=f"Evaluation error: {e}", code="PARSE_ERROR")
    if number is None:
        return EvalResult(ok=False, error="Result is not a finite number", code=NON_FINITE)
    return EvalResult(ok=True, result=_format_evaluation_result(number))


def evaluate(expression: str) -> str:
    """Evaluate input to a number string, ``"Error"`` or ``""``.

    Never raises. ``"Error"`` means the input parsed but the value is not
    finite (e.g. "10/0"); ``""`` means the input is malformed or incomplete.
    """
    result = evaluate_expression(expression)
    if result.ok:
        return result.result or ""
    if result.code == NON_FINITE:
        return ERROR_SENTINEL
    return ""


def preview(expression: str) -> str:
    """Best-effort value for the live preview; any failure gives ``""``."""
    result = evaluate(expression)
    if result and result != ERROR_SENTINEL:
        return result
    return ""


def commit_value(expression: str) -> str:
    """Value for a commit; any failure gives ``"Error"``."""
    result = evaluate(expression)
    if result and result != ERROR_SENTINEL:
        return result
    return ERROR_SENTINEL
