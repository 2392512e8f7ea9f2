"""Input validation and parsing module.

This module handles:
- Input sanitization (length limit, character allow-list)
- Tokenizing display-oriented input (×, ÷, ^, π, percent)
- Recursive-descent parsing into SymPy expressions over a fixed grammar
- Number formatting for results
- Balancing checks for parentheses
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import NamedTuple

import sympy as sp

from .config import (
    ALLOWED_CHARS_REGEX,
    ALLOWED_CONSTANTS,
    ALLOWED_FUNCTIONS,
    MAX_EXPRESSION_DEPTH,
    MAX_INPUT_LENGTH,
    MAX_POWER_DIGITS,
    NAME_REGEX,
    NUMBER_REGEX,
    RESULT_DECIMALS,
    WORKING_PRECISION,
)
from .logging_config import get_logger
from .types import ParseError, ValidationError

logger = get_logger("parser")

# Display symbols and their canonical operator
SYMBOL_ALIASES = {
    "×": "*",
    "÷": "/",
    "**": "^",
}


class Token(NamedTuple):
    kind: str  # NUMBER, NAME, OP, PERCENT, LPAREN, RPAREN
    text: str
    pos: int


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses are balanced. Returns (is_balanced, error_position)."""
    stack: list[int] = []
    for i, char in enumerate(input_str):
        if char == "(":
            stack.append(i)
        elif char == ")":
            if not stack:
                return False, i
            stack.pop()
    if stack:
        return False, stack[0]  # Return position of first unmatched
    return True, None


def validate_input(input_str: str) -> str:
    """Check raw input against the length limit and character allow-list.

    Args:
        input_str: Raw input string from the user

    Returns:
        The input unchanged

    Raises:
        ValidationError: If input is empty, too long, or contains a character
                        outside the allow-list
    """
    if not input_str or not input_str.strip():
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    if not ALLOWED_CHARS_REGEX.match(input_str):
        bad = next(c for c in input_str if not ALLOWED_CHARS_REGEX.match(c))
        logger.debug("Rejected input containing %r", bad)
        raise ValidationError(
            f"Character '{bad}' is not allowed", "INVALID_CHARACTER"
        )
    return input_str


def tokenize(input_str: str) -> list[Token]:
    """Split validated input into tokens.

    Display symbols are normalized here: '×' and '÷' become '*' and '/',
    and '**' is read as '^'.

    Raises:
        ParseError: On a character that starts no token
    """
    tokens: list[Token] = []
    i = 0
    n = len(input_str)
    while i < n:
        char = input_str[i]
        if char.isspace():
            i += 1
            continue
        if char.isdigit() or char == ".":
            match = NUMBER_REGEX.match(input_str, i)
            if not match:
                raise ParseError(f"Malformed number at position {i}")
            tokens.append(Token("NUMBER", match.group(0), i))
            i = match.end()
            continue
        if char == "π":
            tokens.append(Token("NAME", char, i))
            i += 1
            continue
        if char.isalpha():
            match = NAME_REGEX.match(input_str, i)
            if not match:
                raise ParseError(f"Unexpected character '{char}' at position {i}")
            tokens.append(Token("NAME", match.group(0), i))
            i = match.end()
            continue
        if input_str.startswith("**", i):
            tokens.append(Token("OP", "^", i))
            i += 2
            continue
        if char in "+-*/^×÷":
            tokens.append(Token("OP", SYMBOL_ALIASES.get(char, char), i))
        elif char == "%":
            tokens.append(Token("PERCENT", char, i))
        elif char == "(":
            tokens.append(Token("LPAREN", char, i))
        elif char == ")":
            tokens.append(Token("RPAREN", char, i))
        else:
            raise ParseError(f"Unexpected character '{char}' at position {i}")
        i += 1
    return tokens


def power(base: sp.Basic, exponent: sp.Basic) -> sp.Basic:
    """Build ``base^exponent`` without materializing astronomically large powers.

    SymPy raises Floats to integral exponents by exact repeated squaring, so
    a tower like ``9^9^9^9`` would never finish. When the result would have
    more than MAX_POWER_DIGITS decimal digits it is returned as infinity;
    when it would be that many digits below one it is returned as zero.
    ``1^∞`` is NaN.
    """
    try:
        magnitude = abs(complex(sp.N(base, WORKING_PRECISION)))
        exponent_value = complex(sp.N(exponent, WORKING_PRECISION))
    except (TypeError, ValueError, OverflowError):
        return sp.Pow(base, exponent)
    exponent_real = exponent_value.real
    if (
        exponent_value.imag
        or math.isnan(magnitude)
        or math.isnan(exponent_real)
        or exponent_real == 0
    ):
        return sp.Pow(base, exponent)
    if magnitude == 1:
        return sp.nan if math.isinf(exponent_real) else sp.Pow(base, exponent)
    if magnitude == 0:
        digits = -math.inf if exponent_real > 0 else math.inf
    else:
        digits = exponent_real * math.log10(magnitude)
    if digits > MAX_POWER_DIGITS:
        logger.debug("Power with ~%s digits treated as infinite", digits)
        return sp.oo
    if digits < -MAX_POWER_DIGITS:
        return sp.Float(0, WORKING_PRECISION)
    return sp.Pow(base, exponent)


class _ExpressionParser:
    """Recursive-descent parser building a SymPy expression.

    Grammar::

        expr    := term (('+' | '-') term)*
        term    := unary (('*' | '/') unary)*
        unary   := ('+' | '-') unary | power
        power   := primary ('^' unary)?
        primary := NUMBER '%'? | CONST | FUNC '(' expr ')' | '(' expr ')'

    Exponentiation is right associative and binds tighter than unary minus,
    so ``-2^2`` is ``-4`` and ``2^-1`` is ``0.5``. Signs may repeat, so
    ``2--2`` is ``4``. Both forms are accepted here even though a
    JavaScript-style evaluator rejects them as syntax errors.
    """

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.index = 0

    def parse(self) -> sp.Basic:
        if not self.tokens:
            raise ParseError("Nothing to evaluate")
        expr = self._expr(0)
        token = self._peek()
        if token is not None:
            raise ParseError(f"Unexpected '{token.text}' at position {token.pos}")
        return expr

    def _peek(self) -> Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ParseError("Unexpected end of expression")
        self.index += 1
        return token

    def _expect(self, kind: str) -> Token:
        token = self._advance()
        if token.kind != kind:
            raise ParseError(f"Unexpected '{token.text}' at position {token.pos}")
        return token

    def _check_depth(self, depth: int) -> None:
        if depth > MAX_EXPRESSION_DEPTH:
            raise ValidationError(
                f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)",
                "TOO_DEEP",
            )

    def _expr(self, depth: int) -> sp.Basic:
        self._check_depth(depth)
        left = self._term(depth)
        while True:
            token = self._peek()
            if token is None or token.kind != "OP" or token.text not in "+-":
                return left
            self._advance()
            right = self._term(depth)
            left = sp.Add(left, right) if token.text == "+" else sp.Add(left, -right)

    def _term(self, depth: int) -> sp.Basic:
        left = self._unary(depth)
        while True:
            token = self._peek()
            if token is None or token.kind != "OP" or token.text not in "*/":
                return left
            self._advance()
            right = self._unary(depth)
            if token.text == "*":
                left = sp.Mul(left, right)
            else:
                left = sp.Mul(left, sp.Pow(right, -1))

    def _unary(self, depth: int) -> sp.Basic:
        self._check_depth(depth)
        token = self._peek()
        if token is not None and token.kind == "OP" and token.text in "+-":
            self._advance()
            operand = self._unary(depth + 1)
            return -operand if token.text == "-" else operand
        return self._power(depth)

    def _power(self, depth: int) -> sp.Basic:
        base = self._primary(depth)
        token = self._peek()
        if token is not None and token.kind == "OP" and token.text == "^":
            self._advance()
            exponent = self._unary(depth + 1)
            return power(base, exponent)
        return base

    def _primary(self, depth: int) -> sp.Basic:
        token = self._advance()
        if token.kind == "NUMBER":
            text = token.text
            if text.startswith("."):
                text = "0" + text
            if text.endswith("."):
                text = text + "0"
            value = sp.Float(text, WORKING_PRECISION)
            following = self._peek()
            if following is not None and following.kind == "PERCENT":
                self._advance()
                return sp.Mul(value, sp.Pow(sp.Float(100, WORKING_PRECISION), -1))
            return value
        if token.kind == "NAME":
            if token.text in ALLOWED_CONSTANTS:
                return sp.N(ALLOWED_CONSTANTS[token.text], WORKING_PRECISION)
            func = ALLOWED_FUNCTIONS.get(token.text)
            if func is None:
                raise ParseError(
                    f"Unknown function or constant '{token.text}'", "UNKNOWN_FUNCTION"
                )
            self._expect("LPAREN")
            argument = self._expr(depth + 1)
            self._expect("RPAREN")
            return func(argument)
        if token.kind == "LPAREN":
            inner = self._expr(depth + 1)
            self._expect("RPAREN")
            return inner
        raise ParseError(f"Unexpected '{token.text}' at position {token.pos}")


def parse_expression(input_str: str) -> sp.Basic:
    """Validate, tokenize and parse calculator input into a SymPy expression.

    Args:
        input_str: Raw input string (e.g. "2×(3+4)", "sin(π/2)", "50%")

    Returns:
        Unevaluated-to-float SymPy expression

    Raises:
        ValidationError: If the input fails the length, allow-list or depth checks
        ParseError: If the input does not match the grammar
    """
    validate_input(input_str)
    balanced, position = is_balanced(input_str)
    if not balanced:
        raise ParseError(
            f"Unbalanced parentheses at position {position}", "UNBALANCED_PARENS"
        )
    return _ExpressionParser(tokenize(input_str)).parse()


def round_half_up(value: float, decimals: int = RESULT_DECIMALS) -> float:
    """Round to a fixed number of decimal places, ties toward +infinity."""
    if value.is_integer():
        return value
    scale = 10**decimals
    scaled = value * scale
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled + 0.5) / scale


def format_number(val: float) -> str:
    """Render a float as its shortest faithful decimal string.

    Integral values print without a fractional part, values below 1e-6 and
    integers from 1e21 up use exponent notation ("1e-7", "1e+21").

    Args:
        val: Finite float

    Returns:
        Canonical string (e.g. "4", "0.3", "1e-7")
    """
    if val == 0:
        return "0"
    text = repr(val)
    if "e" not in text:
        return str(int(val)) if val.is_integer() else text
    if abs(val) >= 1e-6 and abs(val) < 1e21:
        return format(Decimal(text), "f")
    mantissa, exponent = text.split("e")
    exponent_value = int(exponent)
    sign = "+" if exponent_value > 0 else "-"
    return f"{mantissa}e{sign}{abs(exponent_value)}"
