"""Lumina package: expression evaluator, input state machine, history and AI delegate."""

__all__ = [
    "config",
    "parser",
    "evaluator",
    "state",
    "controller",
    "history",
    "delegate",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "validate_expression",
    "format_result",
]
