"""Logging helpers shared by all tools."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
DATE_FORMAT = "[%X]"


def setup_logger(
    name: Optional[str] = None, level: Union[str, int] = "INFO"
) -> logging.Logger:
    """
    Configure logging with a rich console handler.

    The handler is attached to the root logger once so that module loggers
    obtained through get_logger() inherit it.

    Args:
        name: Logger name to return (root logger if None)
        level: Log level name or number

    Returns:
        Configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
