"""Centralized configuration for Lumina.

This module defines:
- Result shaping (rounding precision, error sentinel)
- Input validation limits (length, nesting depth)
- The character allow-list, operator set and function/constant tables
- History capacity and storage location
- AI delegate settings (model, host)

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with LUMINA_)
"""

import os
import re
from pathlib import Path

import sympy as sp

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("lumina")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Result shaping
RESULT_DECIMALS = int(os.getenv("LUMINA_RESULT_DECIMALS", "10"))
WORKING_PRECISION = 15  # significant digits, matches IEEE double
ERROR_SENTINEL = "Error"

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("LUMINA_MAX_INPUT_LENGTH", "1000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("LUMINA_MAX_EXPRESSION_DEPTH", "100")
)  # nesting levels
# Powers whose result has more decimal digits than this are not built
# exactly; they become infinity (or zero when they underflow).
MAX_POWER_DIGITS = 400

# History
HISTORY_LIMIT = int(os.getenv("LUMINA_HISTORY_LIMIT", "50"))
HISTORY_KEY = "lumina-history"
HISTORY_FILE = Path(
    os.getenv("LUMINA_HISTORY_FILE", str(Path.home() / ".lumina" / "storage.json"))
)

# AI delegate
AI_MODEL = os.getenv("LUMINA_AI_MODEL", "gpt-oss:20b")
OLLAMA_HOST = os.getenv("LUMINA_OLLAMA_HOST", "http://localhost:11434")

# Logging
LOG_LEVEL = os.getenv("LUMINA_LOG_LEVEL", "WARNING")

# Calculator modes
MODES = ("standard", "scientific", "ai")
DEFAULT_MODE = "standard"

# Tokens that continue a calculation from the previous answer
OPERATORS = ("+", "-", "*", "/", "%", "×", "÷")

# Trailing characters that suppress the live preview
PREVIEW_BLOCKERS = ("+", "-", "*", "/", "%", "(")

# Character-class allow-list: digits, operators, parentheses, whitespace,
# display symbols and the letters of the function/constant names.
# "MathPIE" letters are accepted residue; the grammar rejects them later.
ALLOWED_CHARS_REGEX = re.compile(r"^[0-9.+\-*/%^×÷()\sπMathsincostanlogsqrtPIEe]*$")

ALLOWED_FUNCTIONS = {
    "sin": sp.sin,
    "cos": sp.cos,
    "tan": sp.tan,
    "sqrt": sp.sqrt,
    "log": lambda arg: sp.log(arg, 10),
    "ln": sp.log,
}

ALLOWED_CONSTANTS = {
    "π": sp.pi,
    "e": sp.E,
}

NUMBER_REGEX = re.compile(r"\d+(?:\.\d*)?|\.\d+")
NAME_REGEX = re.compile(r"[A-Za-z]+")
