"""
Logging Setup
=============

Configures the loguru sinks used across the package.
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(verbose: bool = False, log_file: Optional[Union[str, Path]] = None):
    """
    Replace the default loguru handler.

    Args:
        verbose: Log DEBUG (FSM transitions) instead of INFO to stderr
        log_file: Optional file receiving every DEBUG record
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level="DEBUG" if verbose else "INFO",
        colorize=True
    )

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            format=LOG_FORMAT,
            level="DEBUG",
            encoding="utf-8"
        )
