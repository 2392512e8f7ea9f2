"""Test that API functions return typed dataclasses."""

from lumina_pkg.api import evaluate, format_result, validate_expression
from lumina_pkg.types import EvalResult


class TestAPITypedReturns:
    """Test that all API functions return typed dataclasses."""

    def test_evaluate_returns_eval_result(self):
        """Test that evaluate() returns EvalResult."""
        result = evaluate("2 + 2")
        assert isinstance(result, EvalResult)
        assert result.ok is True
        assert result.result == "4"
        assert result.to_dict() == {"ok": True, "result": "4"}

    def test_evaluate_error_returns_eval_result(self):
        """Test that evaluate() errors return EvalResult."""
        result = evaluate("__import__('os')")
        assert isinstance(result, EvalResult)
        assert result.ok is False
        assert result.error is not None
        assert result.code == "INVALID_CHARACTER"

    def test_evaluate_non_finite(self):
        result = evaluate("10/0")
        assert result.ok is False
        assert result.code == "NON_FINITE"
        assert "result" not in result.to_dict()

    def test_validate_expression(self):
        """Test validate_expression() returns (bool, message) tuples."""
        assert validate_expression("2 + 2") == (True, None)
        assert validate_expression("2 +") == (False, "Unexpected end of expression")
        ok, message = validate_expression("(2+3")
        assert ok is False
        assert message

    def test_validate_does_not_evaluate(self):
        """Non-finite results are still syntactically valid."""
        assert validate_expression("1/0") == (True, None)

    def test_format_result(self):
        assert format_result(0.1 + 0.2) == "0.3"
        assert format_result(10.0) == "10"
        assert format_result(1e-7) == "1e-7"

    def test_repr(self):
        assert repr(evaluate("1+1")) == "EvalResult(ok=True, result='2')"
        assert "NON_FINITE" in repr(evaluate("0/0"))
