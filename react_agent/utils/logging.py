"""Logging configuration."""

import logging
import os
import sys
from typing import Literal

from pydantic import BaseModel

QUIET_LIBRARIES = ("anthropic", "httpx", "httpcore")


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    stream: Literal["stdout", "stderr"] = "stderr"


def setup_logging(config: LogConfig | None = None) -> None:
    """Set up logging for the agent and its console.

    Logs go to stderr by default so they never mix with assistant output on stdout.
    """
    if config is None:
        config = LogConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stdout if config.stream == "stdout" else sys.stderr,
        force=True,
    )

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)
        level: Explicit level; falls back to the LOG_LEVEL environment variable

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = level or os.getenv("LOG_LEVEL")
    if log_level:
        logger.setLevel(log_level.upper())

    return logger
