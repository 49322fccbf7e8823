"""CLI module for dlcheck.

This package provides the ``dlcheck`` command-line interface for discovering
and running data layer test files.
"""

from .main import (
    # Typer application
    app,
    cli_main,

    # Test discovery
    discover_test_files,
    resolve_test_files,
)

__all__ = [
    # Typer application
    'app',
    'cli_main',

    # Test discovery
    'discover_test_files',
    'resolve_test_files',
]
