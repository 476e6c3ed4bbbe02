"""
Entry point for `python -m signbox`.

Usage:
    python -m signbox sign document.pdf --format pades
    python -m signbox show
"""

from .ui.cli import main

main()
