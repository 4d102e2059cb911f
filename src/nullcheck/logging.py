"""Logging setup for nullcheck using loguru.

Library modules only emit records through :func:`get_logger`; sinks are
configured by the CLI (or by the caller) through :func:`setup_logging`.

Verbosity modes:
- quiet: WARNING+ only
- normal: INFO+ with a short format
- verbose: DEBUG+ with timestamps and module names
"""

from __future__ import annotations

import os
import sys
from typing import Any, Literal

from loguru import logger

__all__ = ["VERBOSE_FORMAT", "get_logger", "logger", "setup_logging"]

VERBOSE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)

SIMPLE_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"

VerbosityType = Literal["quiet", "normal", "verbose"]

VERBOSITY_ENV = "NULLCHECK_VERBOSITY"


def _get_verbosity_from_env() -> VerbosityType:
    env_value = os.environ.get(VERBOSITY_ENV, "normal").lower()
    if env_value in ("quiet", "normal", "verbose"):
        return env_value  # type: ignore[return-value]
    return "normal"


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    verbosity: VerbosityType | None = None,
) -> None:
    """Replace all loguru sinks with a stderr sink for the given verbosity.

    Args:
        level: Log level used in normal mode.
        log_file: Optional file path that receives every record at DEBUG.
        verbosity: "quiet", "normal" or "verbose". If None, reads
            NULLCHECK_VERBOSITY from the environment.
    """
    logger.remove()

    effective_verbosity = verbosity or _get_verbosity_from_env()

    if effective_verbosity == "quiet":
        effective_level = "WARNING"
        log_format = SIMPLE_FORMAT
    elif effective_verbosity == "verbose":
        effective_level = level if level != "INFO" else "DEBUG"
        log_format = VERBOSE_FORMAT
    else:
        effective_level = level
        log_format = SIMPLE_FORMAT

    logger.add(sys.stderr, format=log_format, level=effective_level, colorize=True)

    if log_file:
        logger.add(log_file, format=VERBOSE_FORMAT, level="DEBUG")


def get_logger(name: str = "nullcheck") -> Any:
    """Return the shared logger bound with ``name``."""
    return logger.bind(name=name)
