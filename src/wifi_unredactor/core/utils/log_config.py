"""Logging configuration for wifi-unredactor.

This module provides centralized logging configuration using Loguru.
Stdout carries the formatted document only, so every sink writes to stderr
or to the rotating log file enabled in debug mode.
"""

import sys
from pathlib import Path

from loguru import logger

# Logs directory in user's home directory
LOG_DIR = Path.home() / ".wifi-unredactor" / "logs"
LOG_FILE = LOG_DIR / "wifi-unredactor.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(debug: bool = False) -> None:
    """Replace loguru's default handler with the project's sinks.

    Args:
        debug: Log at DEBUG level and also write to the rotating log file
    """
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if debug else "WARNING",
        backtrace=debug,
        diagnose=debug,
    )

    if not debug:
        return

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot create log directory {LOG_DIR}: {e}")
        return

    # File handler with rotation
    logger.add(
        LOG_FILE,
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        format=FILE_FORMAT,
        level="DEBUG",
        backtrace=True,
        diagnose=True,
    )


__all__ = ["LOG_DIR", "LOG_FILE", "configure_logging", "logger"]
