"""
RESPONSIBILITIES
- Resolve the StockFlow workspace root used for persistence (STOCKFLOW_ROOT or ~/StockFlow).
- Locate store workbooks under the "store" directory.
PROCESS OVERVIEW
1. resolve_root() prefers an explicit root, then the workspace default.
2. ensure_structure() materializes the store/inbox/tmp/logs directories.
3. store_file_path() returns the canonical location of a store workbook.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from stockflow.core.workspace import workspace_root

_DEFAULT_SUBDIRS: tuple[str, ...] = ("store", "inbox", "tmp", "logs")


def resolve_root(root: str | os.PathLike[str] | None = None) -> Path:
    if root is None:
        return workspace_root()
    return Path(root).expanduser().resolve()


def ensure_structure(root: str | os.PathLike[str] | None = None, *, subdirs: Iterable[str] | None = None) -> dict[str, Path]:
    """Ensure persistence directories exist and return them by name."""

    base = resolve_root(root)
    base.mkdir(parents=True, exist_ok=True)
    resolved: dict[str, Path] = {}
    for name in tuple(subdirs) if subdirs is not None else _DEFAULT_SUBDIRS:
        target = base / name
        target.mkdir(parents=True, exist_ok=True)
        resolved[name] = target
    return resolved


def store_file_path(filename: str, root: str | os.PathLike[str] | None = None) -> Path:
    return ensure_structure(root, subdirs=("store",))["store"] / filename
