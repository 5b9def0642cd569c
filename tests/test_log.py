import logging

from rich.logging import RichHandler

from prep_progress.log import configure_logging


def test_configure_logging_sets_level():
    logger = configure_logging(verbose=True)
    assert logger.name == "prep_progress"
    assert logger.level == logging.DEBUG
    assert configure_logging().level == logging.INFO


def test_configure_logging_does_not_stack_handlers():
    configure_logging()
    logger = configure_logging()
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
