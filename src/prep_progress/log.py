"""Logging setup for the command line tools."""
import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "prep_progress"


def configure_logging(verbose: bool = False, console: Console = None) -> logging.Logger:
    """Send prep_progress logs to the terminal through rich.

    Safe to call more than once; the handler is replaced, not stacked.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=console or Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
