"""Logging configuration for discourse-trees."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False) -> None:
    """Send diagnostics to stderr, keeping stdout free for command output.

    Verbose mode adds the DEBUG trail of the marker pipeline, prefixed with
    the module that emitted it.
    """
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG", format="{level.icon} {name}: {message}")
        return
    logger.add(sys.stderr, level="INFO", format="{level.icon} {message}")
