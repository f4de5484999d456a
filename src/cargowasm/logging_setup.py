"""Logging setup for cargowasm."""

import logging
import sys

LOGGER_NAME = "cargowasm"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: logging.Handler | None = None


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a console handler to the cargowasm logger.

    Calling this again only adjusts the level, so repeated builds in watch
    mode never stack handlers.

    Args:
        verbose: Log debug detail (commands, paths) when True

    Returns:
        The package logger
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.WARNING

    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)

    _handler.setLevel(level)
    logger.setLevel(level)
    return logger
