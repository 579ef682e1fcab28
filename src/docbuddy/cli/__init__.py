"""
Diagnostic CLI for docbuddy.
"""

from docbuddy.cli.commands import build_parser, main

__all__ = ["build_parser", "main"]
