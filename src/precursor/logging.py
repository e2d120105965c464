"""Logging setup: rich log lines on stderr, a separate console for results.

Log records always go to stderr so that ``--json`` output on stdout stays
machine-readable.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def log_level(verbosity: int = 0, quiet: bool = False) -> int:
    """Map the ``-q``/``-v`` flags to a logging level.

    ``-q`` wins over any number of ``-v`` flags.
    """
    if quiet:
        return logging.WARNING
    if verbosity >= 1:
        return logging.DEBUG
    return logging.INFO


def configure_logging(verbosity: int = 0, quiet: bool = False, no_color: bool = False) -> Console:
    """Install a rich handler on the root logger.

    Args:
        verbosity: Number of -v flags; two or more also show time and source
        quiet: Only warnings and errors are logged
        no_color: Disable colored output on both consoles

    Returns:
        Console for human-readable results on stdout
    """
    detailed = verbosity >= 2
    handler = RichHandler(
        console=Console(stderr=True, no_color=no_color),
        show_time=detailed,
        show_path=detailed,
        rich_tracebacks=detailed,
    )
    logging.basicConfig(
        level=log_level(verbosity, quiet),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    return Console(no_color=no_color, highlight=not no_color)
