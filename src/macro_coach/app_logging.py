"""Logging configuration helpers."""

import logging

_LOGGER_NAME = "macro_coach"
_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Send ``macro_coach`` logs to a single stream handler.

    Calling it again only updates the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
