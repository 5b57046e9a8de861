from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .workspace import workspace_root

LOGGER_NAME = "stockflow"
LOG_FILENAME = "stockflow.log"
LEVEL_ENV_VAR = "STOCKFLOW_LOG_LEVEL"

_LOGGER: logging.Logger | None = None


def parse_level(name: str) -> int:
    """Map a level name such as ``"debug"`` to its numeric value.

    Raises:
        ValueError: *name* is not a standard logging level.
    """
    value = getattr(logging, name.strip().upper(), None)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {name}")
    return value


def _initial_level() -> int:
    try:
        return parse_level(os.getenv(LEVEL_ENV_VAR, "INFO"))
    except ValueError:
        return logging.INFO


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the ``stockflow`` logger, configuring it on first use.

    Records go to ``<log_dir>/stockflow.log`` (rotating, 2 MB x 3) and to stderr.
    *log_dir* defaults to ``<workspace root>/logs`` and only matters on the first call.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    base = Path(log_dir) if log_dir is not None else workspace_root() / "logs"
    base.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_initial_level())
    logger.propagate = False

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        base / LOG_FILENAME, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    # stdout is reserved for command output (tables, JSON)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    _LOGGER = logger
    return logger


def get_child(name: str, log_dir: Path | None = None) -> logging.Logger:
    """Return ``stockflow.<name>``, sharing the application handlers."""
    return get_logger(log_dir).getChild(name)


def set_level(name: str) -> int:
    """Apply a level to the whole ``stockflow`` tree and return its numeric value."""
    level = parse_level(name)
    get_logger().setLevel(level)
    return level
