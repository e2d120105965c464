"""CLI command implementations for precursor.

Each module pairs a plain function returning a ``RunResult`` with the
typer command that renders it, separated from the CLI setup in cli.py.
"""

from .reset import reset, reset_workspace
from .rollback import rollback, rollback_workspace
from .scan import scan, scan_workspace
from .setup import setup, setup_workspace

__all__ = [
    "reset",
    "reset_workspace",
    "rollback",
    "rollback_workspace",
    "scan",
    "scan_workspace",
    "setup",
    "setup_workspace",
]
