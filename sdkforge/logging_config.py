"""Logging setup shared by every sdkforge module.

Modules obtain their logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once to route records through a rich handler.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "sdkforge"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``sdkforge`` namespace.

    Args:
        name: Usually the calling module's ``__name__``.

    Returns:
        Standard library logger.
    """
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(
    level: int | str = logging.WARNING, console: Console | None = None
) -> None:
    """Install a rich handler on the package logger.

    Calling it again only updates the level.

    Args:
        level: Logging level name or number.
        console: Console to render into (stderr by default).
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    if _configured:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True
