"""Logging configuration helpers."""

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HTTP_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Attach a single stream handler to the ``nutrisnap`` logger.

    Repeated calls only change the level. HTTP client loggers are held at
    WARNING so one line per request does not bury stage outcomes.
    """
    logger = logging.getLogger("nutrisnap")
    logger.setLevel(level)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
