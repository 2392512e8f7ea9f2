"""Unit tests for parser module."""

import unittest

import sympy as sp

from lumina_pkg.parser import (
    format_number,
    is_balanced,
    parse_expression,
    power,
    round_half_up,
    tokenize,
    validate_input,
)
from lumina_pkg.types import ParseError, ValidationError


class TestValidateInput(unittest.TestCase):
    """Test input validation."""

    def test_accepts_arithmetic(self):
        self.assertEqual(validate_input("2+2"), "2+2")
        self.assertEqual(validate_input("(1.5 × 2) ÷ 3 ^ 2"), "(1.5 × 2) ÷ 3 ^ 2")

    def test_accepts_function_names_and_constants(self):
        validate_input("sin(π)+cos(e)+tan(1)+sqrt(4)+log(10)+ln(e)")

    def test_accepts_residue_letters(self):
        # Allow-list is character based, so leftover letters pass validation
        validate_input("Math.PI")

    def test_empty_input(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_input("")
        self.assertEqual(ctx.exception.code, "EMPTY_INPUT")
        with self.assertRaises(ValidationError):
            validate_input("   ")

    def test_forbidden_characters(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_input("2+x")
        self.assertEqual(ctx.exception.code, "INVALID_CHARACTER")
        with self.assertRaises(ValidationError):
            validate_input("import os")
        with self.assertRaises(ValidationError):
            validate_input("__import__('os')")

    def test_input_length_limit(self):
        from lumina_pkg.config import MAX_INPUT_LENGTH

        long_input = "1" * (MAX_INPUT_LENGTH + 1)
        with self.assertRaises(ValidationError) as ctx:
            validate_input(long_input)
        self.assertEqual(ctx.exception.code, "TOO_LONG")

    def test_parentheses_balancing(self):
        balanced, _ = is_balanced("(1+2)")
        self.assertTrue(balanced)
        balanced, _ = is_balanced("((1+2)*3)")
        self.assertTrue(balanced)
        balanced, pos = is_balanced("(1+2")
        self.assertFalse(balanced)
        self.assertEqual(pos, 0)
        balanced, pos = is_balanced("1+2)")
        self.assertFalse(balanced)
        self.assertEqual(pos, 3)


class TestTokenize(unittest.TestCase):
    """Test tokenizing display symbols."""

    def test_display_operators_are_normalized(self):
        tokens = tokenize("2×3÷4")
        self.assertEqual([t.text for t in tokens], ["2", "*", "3", "/", "4"])

    def test_double_star_is_power(self):
        tokens = tokenize("2**3")
        self.assertEqual([(t.kind, t.text) for t in tokens], [
            ("NUMBER", "2"),
            ("OP", "^"),
            ("NUMBER", "3"),
        ])

    def test_names_and_percent(self):
        tokens = tokenize("sqrt(50%)+π")
        self.assertEqual(
            [t.kind for t in tokens],
            ["NAME", "LPAREN", "NUMBER", "PERCENT", "RPAREN", "OP", "NAME"],
        )

    def test_positions(self):
        tokens = tokenize("12 + 3")
        self.assertEqual([t.pos for t in tokens], [0, 3, 5])


class TestParse(unittest.TestCase):
    """Test parsing into SymPy expressions."""

    def _value(self, text):
        return float(sp.N(parse_expression(text)))

    def test_precedence(self):
        self.assertAlmostEqual(self._value("2+3*4"), 14.0)
        self.assertAlmostEqual(self._value("(2+3)*4"), 20.0)
        self.assertAlmostEqual(self._value("10-4-3"), 3.0)
        self.assertAlmostEqual(self._value("64/4/2"), 8.0)

    def test_power_is_right_associative(self):
        self.assertAlmostEqual(self._value("2^3^2"), 512.0)

    def test_power_binds_tighter_than_unary_minus(self):
        self.assertAlmostEqual(self._value("-2^2"), -4.0)
        self.assertAlmostEqual(self._value("2^-1"), 0.5)

    def test_percent_of_number(self):
        self.assertAlmostEqual(self._value("50%"), 0.5)
        self.assertAlmostEqual(self._value("200*12.5%"), 25.0)

    def test_percent_not_applied_to_subexpression(self):
        with self.assertRaises(ParseError):
            parse_expression("(50)%")
        with self.assertRaises(ParseError):
            parse_expression("50%%")
        with self.assertRaises(ParseError):
            parse_expression("5%3")

    def test_no_implicit_multiplication(self):
        with self.assertRaises(ParseError):
            parse_expression("2(3)")
        with self.assertRaises(ParseError):
            parse_expression("2π")
        with self.assertRaises(ParseError):
            parse_expression("1e5")

    def test_unknown_name(self):
        with self.assertRaises(ParseError) as ctx:
            parse_expression("Math")
        self.assertEqual(ctx.exception.code, "UNKNOWN_FUNCTION")

    def test_function_requires_parenthesis(self):
        with self.assertRaises(ParseError):
            parse_expression("sin 1")

    def test_unbalanced(self):
        with self.assertRaises(ParseError) as ctx:
            parse_expression("(1+2")
        self.assertEqual(ctx.exception.code, "UNBALANCED_PARENS")

    def test_nesting_limit(self):
        from lumina_pkg.config import MAX_EXPRESSION_DEPTH

        depth = MAX_EXPRESSION_DEPTH + 5
        with self.assertRaises(ValidationError) as ctx:
            parse_expression("(" * depth + "1" + ")" * depth)
        self.assertEqual(ctx.exception.code, "TOO_DEEP")


class TestPower(unittest.TestCase):
    """Test the guard on powers far outside double range."""

    def test_ordinary_power_is_exact(self):
        result = power(sp.Float(2, 15), sp.Float(10, 15))
        self.assertEqual(float(result), 1024.0)

    def test_overflow_is_infinite(self):
        self.assertEqual(power(sp.Float(9, 15), sp.Float(387420489, 15)), sp.oo)
        self.assertEqual(power(sp.Float(0.5, 15), sp.Float(-5000, 15)), sp.oo)

    def test_underflow_is_zero(self):
        self.assertEqual(float(power(sp.Float(9, 15), sp.Float(-387420489, 15))), 0.0)
        self.assertEqual(float(power(sp.Float(0.5, 15), sp.oo)), 0.0)

    def test_one_to_infinity_is_nan(self):
        self.assertIs(power(sp.Float(1, 15), sp.oo), sp.nan)

    def test_nested_tower_parses_quickly(self):
        self.assertEqual(parse_expression("9^9^9^9"), sp.oo)


class TestFormatting(unittest.TestCase):
    """Test result rounding and formatting."""

    def test_round_half_up(self):
        self.assertEqual(round_half_up(0.1 + 0.2), 0.3)
        self.assertEqual(round_half_up(2.5, 0), 3.0)
        self.assertEqual(round_half_up(-2.5, 0), -2.0)
        self.assertEqual(round_half_up(2.0**60), 2.0**60)

    def test_integers_have_no_fraction(self):
        self.assertEqual(format_number(4.0), "4")
        self.assertEqual(format_number(-12.0), "-12")
        self.assertEqual(format_number(123456789012.0), "123456789012")
        self.assertEqual(format_number(2.0**60), "1152921504606847000")
        self.assertEqual(format_number(2.0**53 + 2), "9007199254740994")

    def test_zero(self):
        self.assertEqual(format_number(0.0), "0")
        self.assertEqual(format_number(-0.0), "0")

    def test_decimals(self):
        self.assertEqual(format_number(0.3), "0.3")
        self.assertEqual(format_number(-2.5), "-2.5")
        self.assertEqual(format_number(0.00001), "0.00001")

    def test_exponent_notation(self):
        self.assertEqual(format_number(1e-7), "1e-7")
        self.assertEqual(format_number(1e21), "1e+21")
        self.assertEqual(format_number(1.5e22), "1.5e+22")


if __name__ == "__main__":
    unittest.main()
