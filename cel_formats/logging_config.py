#!/usr/bin/env python3
"""
Logging for the cel_formats package

Every module logs through a child of the "cel_formats" logger. Nothing is
printed until setup_logging() attaches handlers; setting CEL_FORMATS_DEBUG
turns on per-frame debug output without code changes.
"""
from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOGGER_NAME = "cel_formats"
DEBUG_ENV_VAR = "CEL_FORMATS_DEBUG"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def debug_requested(environ: Mapping[str, str] | None = None) -> bool:
    """True when CEL_FORMATS_DEBUG is set to a truthy value."""
    env = os.environ if environ is None else environ
    return env.get(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logging(level: str | int = "INFO",
                  log_file: str | None = None) -> logging.Logger:
    """
    Configure the package logger.

    Replaces any handlers from an earlier call with a stderr handler and,
    when log_file is given, a file handler. Records do not propagate to
    the root logger.

    Args:
        level: Level name or number; unknown names mean INFO
        log_file: Optional file that receives the same records

    Returns:
        The package logger
    """
    numeric_level = logging.DEBUG if debug_requested() else _resolve_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    _attach(logger, logging.StreamHandler(sys.stderr), numeric_level)
    if log_file:
        try:
            _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), numeric_level)
        except OSError as e:
            logger.warning(f"Logging to console only, cannot open {log_file}: {e}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, nested under the package logger."""
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
