"""
Interface module - External interfaces to the library store.

This module contains:
- cli.py: Command-line interface for operators
"""

from lectern.interface.cli import app as cli_app

__all__ = [
    "cli_app",
]
