"""Define utility functions to simplify logging to the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("stomp_planning")
console = Console()


def configure_logging(level: int = logging.INFO) -> None:
    """Route the package logger through a Rich handler at the given level."""
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False))
    logger.setLevel(level)


def log_debug(message: str) -> None:
    """Log the given string at the debug level."""
    logger.debug(message)


def log_info(message: str) -> None:
    """Log the given string to standard output."""
    logger.info(message)


def log_warning(message: str) -> None:
    """Log the given string as a warning."""
    logger.warning(message)


def log_error(message: str) -> None:
    """Log the given string as an error."""
    logger.error(message)
