"""Domisol: search, filter and sort a catalog of music sheets."""

from loguru import logger

__version__ = "0.1.0"

# Silent when imported as a library; setup_logging() turns logging back on.
logger.disable("domisol")
