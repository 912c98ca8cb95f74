"""
CLI layer for taskrein.

Provides a Typer application whose commands build runners through the
public factories. This package handles only terminal transport: argument
parsing, coloured output and exit codes.

Entry point::

    taskrein --help
"""

from taskrein.cli.app import app

__all__ = ["app"]
