"""Logging configuration for govuk-frontend-diff."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler

# Chatty per-request loggers from the HTTP stack
_NOISY_LOGGERS = ("httpx", "httpcore")


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1=verbose, 2+=debug with
            HTTP client logs, timestamps and source paths)
        quiet: Only warnings and errors (takes precedence over verbosity)
        no_color: Disable colored output

    Returns:
        Rich console bound to stderr, for logs and progress
    """
    if quiet:
        level = LogLevel.QUIET
    elif verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    console = Console(stderr=True, no_color=no_color)

    handler = RichHandler(
        console=console,
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbosity >= 2 else logging.WARNING)

    return console
