from __future__ import annotations

import argparse
import asyncio
import json

from .config import HISTORY_FILE, LOG_LEVEL, MODES, VERSION
from .controller import Calculator
from .delegate import OllamaDelegate
from .history import HistoryStore, JsonFileStorage, MemoryStorage
from .logging_config import get_logger, setup_logging

logger = get_logger("cli")

HELP_TEXT = """Lumina calculator

Type an expression and press Enter to evaluate it:
    2+2            -> 4
    2×(3+4)        -> 14
    sqrt(16)+2^3   -> 12
    50%            -> 0.5
    sin(π/2)       -> 1
    log(1000)      -> 3     (base 10; ln() is the natural log)

A line starting with an operator continues from the previous result:
    *3             -> previous result times 3

Ask the AI with a leading '?', or switch to AI mode with ':mode ai':
    ?volume of a sphere with radius 4

Commands:
    :history         show recent calculations
    :select N        load history entry N back into the display
    :clear-history   delete all history
    :mode NAME       switch mode (standard, scientific, ai)
    :clear           clear the current expression and result
    :del             delete the last character (or clear after a result)
    :state           show the current display state
    :help            show this help
    :quit            exit
"""


def print_state(calc: Calculator, output_format: str = "human") -> None:
    """Print the display state after an intent."""
    state = calc.state
    if output_format == "json":
        print(json.dumps(state.to_dict(), ensure_ascii=False))
        return
    if state.committed_result:
        print(f"= {state.committed_result}")
    elif state.preview_result:
        print(f"{state.expression}  (= {state.preview_result})")
    else:
        print(state.expression or "0")


def print_history(calc: Calculator) -> None:
    if not len(calc.history):
        print("No calculations yet")
        return
    for index, entry in enumerate(calc.history, start=1):
        marker = " [ai]" if entry.type == "ai" else ""
        print(f"{index:>3}. {entry.expression} = {entry.result}{marker}")
        if entry.explanation:
            print(f"       {entry.explanation}")


def evaluate_line(calc: Calculator, line: str) -> str:
    """Feed a typed line into the calculator key by key, then commit."""
    for char in line:
        calc.append(char)
    return calc.commit()


def ask_ai(calc: Calculator, prompt: str, output_format: str = "human") -> bool:
    """Delegate a prompt and print the answer. Returns False on error."""
    if not prompt.strip():
        print("Error: Empty question.")
        return False
    result = asyncio.run(calc.delegate_to_ai(prompt))
    if output_format == "json":
        print_state(calc, output_format)
    else:
        print(f"= {result}")
        latest = calc.history.entries[0] if len(calc.history) else None
        if result != "Error" and latest is not None and latest.explanation:
            print(latest.explanation)
    return result != "Error"


def _run_command(calc: Calculator, command: str, output_format: str) -> bool:
    """Handle a ':' command. Returns False when the REPL should exit."""
    name, _, argument = command[1:].partition(" ")
    name = name.lower()
    argument = argument.strip()
    if name in ("quit", "exit", "q"):
        return False
    if name == "help":
        print(HELP_TEXT)
    elif name == "history":
        print_history(calc)
    elif name == "clear-history":
        calc.clear_history()
        print("History cleared")
    elif name == "select":
        try:
            index = int(argument)
            entry = calc.history.entries[index - 1] if index > 0 else None
        except (ValueError, IndexError):
            entry = None
        if entry is None:
            print(f"No history entry '{argument}'")
        else:
            calc.select_history(entry.id)
            print(f"{entry.expression}")
            print_state(calc, output_format)
    elif name == "mode":
        if argument not in MODES:
            print(f"Unknown mode '{argument}'. Choose one of: {', '.join(MODES)}")
        else:
            calc.set_mode(argument)
            print(f"Mode: {argument}")
    elif name == "clear":
        calc.clear()
        print_state(calc, output_format)
    elif name == "del":
        calc.delete()
        print_state(calc, output_format)
    elif name == "state":
        print(json.dumps(calc.snapshot(), ensure_ascii=False))
    else:
        print(f"Unknown command ':{name}'. Type ':help' for commands.")
    return True


def repl_loop(calc: Calculator, output_format: str = "human") -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    print("Lumina calculator. Type ':help' for commands, ':quit' to exit.")
    while True:
        try:
            marker = "ai> " if calc.state.mode == "ai" else ">>> "
            raw = input(marker).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue
        if raw.startswith(":"):
            if not _run_command(calc, raw, output_format):
                print("Goodbye.")
                break
            continue
        if raw.startswith("?") or calc.state.mode == "ai":
            ask_ai(calc, raw.lstrip("?").strip(), output_format)
            continue
        evaluate_line(calc, raw)
        print_state(calc, output_format)


def build_calculator(args: argparse.Namespace) -> Calculator:
    """Wire storage and delegate from parsed arguments."""
    if args.no_history:
        storage = MemoryStorage()
    else:
        storage = JsonFileStorage(args.history_file)
        logger.debug(f"Using history file {args.history_file}")
    delegate = OllamaDelegate(model=args.model) if args.model else OllamaDelegate()
    return Calculator(history=HistoryStore(storage), delegate=delegate)


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for Lumina CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="lumina")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--ai",
        type=str,
        help="Ask the AI one question and exit",
        dest="ai_prompt",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=LOG_LEVEL.upper(),
        help="Set logging level (default: LUMINA_LOG_LEVEL or WARNING)",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--history-file",
        type=str,
        default=str(HISTORY_FILE),
        help="Where history is stored (default: ~/.lumina/storage.json)",
    )
    parser.add_argument(
        "--no-history",
        action="store_true",
        help="Keep history in memory only for this session",
    )
    parser.add_argument("--model", type=str, help="Model used for AI questions")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.version:
        print(VERSION)
        return 0

    calc = build_calculator(args)

    if args.eval_expr is not None:
        expr = args.eval_expr.strip()
        if not expr:
            print("Error: Empty input. Please enter an expression.")
            return 1
        result = evaluate_line(calc, expr)
        if args.format == "json":
            print(
                json.dumps(
                    {"ok": result != "Error", "expression": expr, "result": result},
                    ensure_ascii=False,
                )
            )
        else:
            print(result)
        return 0 if result != "Error" else 1

    if args.ai_prompt is not None:
        return 0 if ask_ai(calc, args.ai_prompt, args.format) else 1

    repl_loop(calc, output_format=args.format)
    return 0


if __name__ == "__main__":
    """Allow running the CLI module directly with python -m lumina_pkg.cli"""
    import sys

    sys.exit(main_entry())
