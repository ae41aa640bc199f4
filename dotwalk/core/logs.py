"""Logging setup for the CLI and the MCP server."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "dotwalk"


def setup_logging(level: str = "WARNING", console: Console | None = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Log level string (e.g. 'INFO', 'DEBUG').
        console: Console to log to. Defaults to stderr so that JSON and DOT
            written to stdout stay clean.

    Returns:
        The configured ``dotwalk`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
