"""Logging setup.

All modules log through ``logging.getLogger(__name__)``; this module decides
where the records go. Console output is rendered with Rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(name)s: %(message)s"
LOG_DATE_FORMAT = "[%X]"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level: str | int) -> int:
    """Convert a level name to its numeric value. Unknown names map to INFO."""
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.strip().lower(), logging.INFO)


def level_name(level: str) -> str:
    """Return the canonical lowercase name of a log level.

    Raises:
        ValueError: If the name is not debug, info, warning or error
    """
    name = level.strip().lower()
    if name not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}. Choose from: {', '.join(_LEVELS)}")
    return name


def configure_logging(level: str | int = "info", console: Console | None = None) -> None:
    """Install a Rich handler on the ``chatrelay`` logger.

    Safe to call more than once; the previous handler is replaced.
    """
    logger = logging.getLogger("chatrelay")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(parse_level(level))
    logger.propagate = False
