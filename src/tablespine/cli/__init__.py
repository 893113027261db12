"""
CLI layer for tablespine.

Provides a Typer application that resolves databases from YAML host
configuration files and dumps one into another.  All behaviour lives in
the library; this package only handles argument parsing and terminal
output.

Entry point::

    tablespine --help
"""

from tablespine.cli.app import app

__all__ = ["app"]
