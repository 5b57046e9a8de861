"""Logging helpers for the stockflow_io package."""

# Module responsibilities:
# - Hand IO modules loggers under the application tree ("stockflow.io.<name>").
# - Resolve the log directory from STOCKFLOW_ROOT so imports never write into the CWD.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from stockflow.core.logger import get_child
from stockflow.core.workspace import workspace_root


def _resolve_log_dir(log_dir: Optional[Path] = None) -> Path:
    target = log_dir if log_dir is not None else workspace_root() / "logs"
    target.mkdir(parents=True, exist_ok=True)
    return target


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return an IO logger.

    Args:
        name: Module suffix, e.g. ``"grid_reader"``.
        log_dir: Optional override for the logging directory (first configuration only).

    Returns:
        The ``stockflow.io.<name>`` logger.
    """

    return get_child(f"io.{name}", _resolve_log_dir(log_dir))
