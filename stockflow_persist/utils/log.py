"""
RESPONSIBILITIES
- Hand persistence modules a child of the core "stockflow" logger.
PROCESS OVERVIEW
1. Callers request get_logger(name, root).
2. ensure_structure() creates the logs directory under the chosen root.
3. The core logger is configured once and a "stockflow.persist.<name>" child is returned.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stockflow.core.logger import get_child

from .paths import ensure_structure


def get_logger(name: str, root: Path | None = None) -> logging.Logger:
    directories = ensure_structure(root, subdirs=("logs",))
    return get_child(f"persist.{name}", directories["logs"])
