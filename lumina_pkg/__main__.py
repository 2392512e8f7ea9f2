"""Main entry point for running lumina_pkg as a module.

This allows running Lumina with:
    python -m lumina_pkg
    python -m lumina_pkg -e "2+2"
    python -m lumina_pkg --ai "area of a circle with radius 3"

This is equivalent to running:
    python -m lumina_pkg.cli
    python lumina.py
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
