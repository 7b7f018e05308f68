"""
Logging setup for the product scorer.

Routes the ``product_scorer`` and ``product_catalog`` loggers through a Rich
console handler on stderr so command output on stdout stays parseable.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for log levels
_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "bold white on red",
    "log.time": "dim",
    "log.message": "default",
    "log.path": "dim",
})

# Shared console instance with custom theme
_console = Console(theme=_LOG_THEME, stderr=True)

# Loggers configured together; the catalog layer logs weight rescaling
LOGGER_NAMES = ("product_scorer", "product_catalog")


def setup_logging(
    level: str = "WARNING",
    rich_tracebacks: bool = True,
    show_path: bool = False,
    show_time: bool = True,
    console: Optional[Console] = None,
) -> None:
    """
    Install a RichHandler on the package loggers.

    Calling it again replaces the previous handlers, so the CLI can switch
    to DEBUG after parsing ``--verbose``.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rich_tracebacks: Whether to use rich for exception tracebacks
        show_path: Whether to show file path in console logs
        show_time: Whether to show timestamp in console logs
        console: Console to write to (defaults to a themed stderr console)
    """
    level_value = getattr(logging, level.upper())

    for name in LOGGER_NAMES:
        handler = RichHandler(
            console=console or _console,
            level=level_value,
            show_time=show_time,
            show_path=show_path,
            rich_tracebacks=rich_tracebacks,
            markup=False,
        )
        logger = logging.getLogger(name)
        logger.setLevel(level_value)
        logger.handlers.clear()
        logger.addHandler(handler)
        # Prevent propagation to root logger
        logger.propagate = False


# Library default: silent until the application configures logging
for _name in LOGGER_NAMES:
    logging.getLogger(_name).addHandler(logging.NullHandler())
