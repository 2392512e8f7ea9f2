#!/usr/bin/env python3
"""
Lumina - Calculator with standard, scientific and AI modes

Main entry point for the Lumina calculator application.
This file serves as a thin wrapper that delegates all functionality
to the lumina_pkg package.

Usage:
    python lumina.py                    # Interactive REPL
    python lumina.py -e "2+2"           # Evaluate expression
    python lumina.py --help             # Show help
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Main entry point for Lumina.

    Delegates all functionality to the lumina_pkg.cli module,
    which handles argument parsing, evaluation, and output formatting.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    from lumina_pkg.cli import main_entry

    return main_entry()


if __name__ == "__main__":
    sys.exit(main())
