"""Logger construction for composers."""

import logging

from ..core.constants import LOG_FORMAT, LOGGER_NAME
from ..models.config import ComposerOptions


def build_logger(options: ComposerOptions) -> logging.Logger:
    """Return the logger a composer narrates its lifecycle to.

    Stream and quiet loggers are standalone instances that are never
    registered with the logging module, so composers do not share or
    reconfigure each other's output.
    """
    if options.logger is not None:
        return options.logger

    if options.quiet:
        logger = logging.Logger(LOGGER_NAME)
        logger.addHandler(logging.NullHandler())
        return logger

    if options.log_stream is not None:
        logger = logging.Logger(LOGGER_NAME, level=logging.INFO)
        handler = logging.StreamHandler(options.log_stream)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        return logger

    return logging.getLogger(LOGGER_NAME)
