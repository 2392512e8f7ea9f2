"""Public API for Lumina - returns structured objects without side effects."""

from __future__ import annotations

from .evaluator import evaluate_expression
from .parser import format_number, parse_expression, round_half_up
from .types import EvalResult, ParseError, ValidationError


def evaluate(expression: str) -> EvalResult:
    """Evaluate a calculator expression.

    Args:
        expression: Expression string (e.g., "2+2", "sin(π/2)", "50%×8")

    Returns:
        EvalResult with the formatted result, or the error and its code

    Example:
        >>> from lumina_pkg.api import evaluate
        >>> evaluate("2+2").result
        '4'
        >>> evaluate("10/0").code
        'NON_FINITE'
    """
    return evaluate_expression(expression)


def validate_expression(expression: str) -> tuple[bool, str | None]:
    """Validate an expression without evaluating it numerically.

    Args:
        expression: Expression string to validate

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> from lumina_pkg.api import validate_expression
        >>> validate_expression("2 + 2")
        (True, None)
        >>> validate_expression("2 +")
        (False, 'Unexpected end of expression')
    """
    try:
        parse_expression(expression)
        return True, None
    except (ValidationError, ParseError) as e:
        return False, str(e)


def format_result(value: float) -> str:
    """Round and format a float the way committed results are displayed.

    Example:
        >>> from lumina_pkg.api import format_result
        >>> format_result(0.1 + 0.2)
        '0.3'
    """
    return format_number(round_half_up(value))
