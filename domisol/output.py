"""Loguru configuration for the domisol CLI."""

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    """
    Replace loguru's default handler with a single sink.

    Args:
        level:    Minimum level (DEBUG, INFO, WARNING, ERROR).
        log_file: Write to this rotating file instead of stderr when given.
    """
    logger.remove()
    logger.enable("domisol")

    if log_file is not None:
        logger.add(
            log_file,
            rotation="10 MB",
            retention=5,
            level=level,
            format=LOG_FORMAT,
            enqueue=False,
        )
    else:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    logger.debug(f"Logging initialized (level={level}, file={log_file})")
