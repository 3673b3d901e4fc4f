"""Logging configuration for the fleetlock CLI."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "fleetlock"


class LogLevel(IntEnum):
    """Log levels selectable from the command line."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def resolve_level(verbosity: int = 0, quiet: bool = False) -> LogLevel:
    """Map CLI flags to a log level.

    ``quiet`` wins over any number of ``-v`` flags.
    """
    if quiet:
        return LogLevel.QUIET
    if verbosity >= 1:
        return LogLevel.VERBOSE
    return LogLevel.NORMAL


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    debug: bool = False,
) -> Console:
    """Install a Rich handler on the fleetlock logger.

    Lock events are timestamped unless running at normal verbosity on an
    interactive terminal, since agents usually run unattended and the
    order of acquire/release lines across hosts matters when reading logs.

    Args:
        verbosity: Number of -v flags (0=normal, 1+=debug)
        quiet: Only show warnings and errors
        no_color: Disable colored output
        debug: Same as -vv, also shows source paths; ignored if quiet is set

    Returns:
        The stderr console the handler writes to
    """
    if debug and not quiet:
        verbosity = max(verbosity, 2)
    level = resolve_level(verbosity, quiet)

    console = Console(stderr=True, no_color=no_color)
    handler = RichHandler(
        console=console,
        show_time=verbosity >= 1 or not console.is_terminal,
        show_path=verbosity >= 2,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return console
