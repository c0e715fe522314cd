"""
Logging setup for the command-line tool.

Library modules only create module-level loggers; handlers are attached here,
by the CLI.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def setup_logger(
    name: str,
    level: int | str = logging.INFO,
    log_file: Path | None = None,
) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (the package name, so child loggers inherit it)
        level: Logging level for console output
        log_file: Optional file path for detailed log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if log_file else level)

    # Remove existing handlers to avoid duplicates when called again
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger
