"""Logging setup for hosts embedding trellis."""
import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "trellis"


def init_logger(level=logging.WARNING, /, *, console=None):
    """
    Route the "trellis" logger hierarchy through a RichHandler.

    Parameters
    - level: int, threshold for the "trellis" logger (DEBUG traces dispatch).
    - console: rich Console for the handler (stderr console by default).

    Calling it again replaces the previously installed handler instead of
    stacking a second one.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console if console is not None else Console(stderr=True),
        show_path=level <= logging.DEBUG,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(r"%(name)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_logger(name=LOGGER_NAME, /):
    """
    Return a logger below the "trellis" hierarchy.

    Names outside the hierarchy are nested under it ("bot" → "trellis.bot").
    """
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = (
    "LOGGER_NAME",
    "init_logger",
    "get_logger",
)
