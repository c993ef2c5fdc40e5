"""Logging configuration for the lead signal pipeline."""

import logging
import sys
from typing import Optional


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Per-module logger writing to stdout as "time | module | level | message".
    The first call for a name attaches the handler and sets INFO unless level is given.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
        logger.setLevel(level if level is not None else logging.INFO)
    elif level is not None:
        logger.setLevel(level)
    return logger
