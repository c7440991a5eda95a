"""Logging setup for the command line."""

import logging
import logging.config
import os
from typing import Optional

from rich.console import Console

# Chart output goes to stdout; diagnostics stay on stderr.
_stderr = Console(stderr=True)


def level_for(verbosity: int) -> str:
    if verbosity >= 2:
        return "DEBUG"
    if verbosity == 1:
        return "INFO"
    return "WARNING"


def setup_logging(log_level: Optional[str] = None) -> None:
    """
    Configure the root logger with a Rich handler on stderr.

    Args:
        log_level: DEBUG, INFO, WARNING, ... Defaults to the LOG_LEVEL
                   environment variable, or WARNING. Unknown names fall
                   back to WARNING.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "WARNING")
    log_level = log_level.upper()
    if not isinstance(logging.getLevelName(log_level), int):
        log_level = "WARNING"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": "%(message)s", "datefmt": "[%X]"},
            },
            "handlers": {
                "rich": {
                    "class": "rich.logging.RichHandler",
                    "formatter": "plain",
                    "console": _stderr,
                    "show_path": False,
                },
            },
            "root": {
                "level": log_level,
                "handlers": ["rich"],
            },
        }
    )
