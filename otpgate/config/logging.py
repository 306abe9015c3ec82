"""Root logger setup."""

import logging


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; an existing handler is kept and only the
    level is updated.
    """
    logger = logging.getLogger()
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
