"""Command-line interface for gitflow-cli.

This package provides the CLI entry point, argument parsing and menus.
"""

from .main import main
from .args import parse_args

__all__ = ["main", "parse_args"]
