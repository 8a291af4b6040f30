"""
Logging configuration for the compatibility scanner.

Diagnostics go to stderr through a rich handler so they never mix with the
JSON or CSV report on stdout.
"""

import logging
from typing import List, Optional, Union

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "compat_scanner"


def _resolve_level(level: Union[str, int, None], verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.WARNING


def setup_logging(
    level: Union[str, int, None] = None,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger with a rich handler for colored output.

    Args:
        level: Level name or number from configuration (default WARNING)
        verbose: Enable DEBUG level logging
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to

    Returns:
        Configured logger instance for compat_scanner
    """
    resolved = _resolve_level(level, verbose, quiet)

    # Create rich console for logging
    console = Console(stderr=True)

    handlers: List[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logger = logging.getLogger(LOGGER_NAME)

    # Replace handlers from an earlier call instead of stacking them
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        logger.addHandler(handler)

    logger.setLevel(resolved)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'compat_scanner.core')
              If None, returns the root compat_scanner logger
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
