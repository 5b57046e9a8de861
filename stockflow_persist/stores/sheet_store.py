"""
RESPONSIBILITIES
- Implement the BaseStore workflow once for single-sheet workbooks keyed by a natural key.
- Stamp every row with an opaque id and created/updated timestamps.
PROCESS OVERVIEW
1. Subclasses declare workbook, sheet_name, columns and natural_key.
2. _normalize_record() (per subclass) validates a payload into sheet-ready text.
3. upsert() merges under the workbook lock and returns the stored row with its id.
4. rows()/find() give read access for queries and find-or-create callers.
"""

from __future__ import annotations

import logging
import os
from abc import abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Mapping

import pandas as pd

from stockflow_persist.stores.base_store import (
    BaseStore,
    PersistHealth,
    StoreError,
    StoreInitializationError,
    StoreLockedError,
    SupportsToDict,
    cell_str,
    new_record_id,
    utcnow_iso,
)
from stockflow_persist.utils.excel_io import ensure_workbook, read_sheet, workbook_lock, write_sheet
from stockflow_persist.utils.log import get_logger
from stockflow_persist.utils.paths import ensure_structure, store_file_path

Clock = Callable[[], str]


class SheetStore(BaseStore):
    """One workbook with one sheet whose rows are unique on ``natural_key``."""

    workbook: str
    natural_key: tuple[str, ...]
    immutable_fields: tuple[str, ...] = ("id", "created_at")

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        logger: logging.Logger | None = None,
        clock: Clock | None = None,
    ) -> None:
        resolved_root = Path(root).expanduser().resolve() if root else None
        super().__init__(logger=logger or get_logger(self.sheet_name, resolved_root))
        self._root = resolved_root
        self._clock = clock or utcnow_iso
        self.path = store_file_path(self.workbook, self._root)

    # BaseStore API -----------------------------------------------------------------

    def init_store(self) -> Path:
        self.logger.debug("Ensuring %s workbook exists at %s", self.sheet_name, self.path)
        try:
            ensure_workbook(self.path, self.sheet_name, self.columns)
        except OSError as exc:
            raise StoreInitializationError(str(exc)) from exc
        return self.path

    def upsert(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        payload = self._normalize_record(record)
        key = self._key_of(payload)
        self.init_store()
        now_iso = self._clock()
        with workbook_lock(self.path):
            rows = read_sheet(self.path, self.sheet_name, self.columns, use_lock=False)
            stored: dict[str, object] | None = None
            merged: list[dict[str, object]] = []
            for row in rows:
                if stored is None and self._key_of(row) == key:
                    stored = dict(row)
                    stored.update(
                        {name: value for name, value in payload.items() if name not in self.immutable_fields}
                    )
                    stored["updated_at"] = now_iso
                    merged.append(stored)
                else:
                    merged.append(row)
            if stored is None:
                stored = {column: "" for column in self.columns}
                stored.update(payload)
                stored["id"] = new_record_id()
                stored["created_at"] = now_iso
                stored["updated_at"] = now_iso
                merged.append(stored)
            write_sheet(self.path, self.sheet_name, merged, self.columns, use_lock=False)
        self.logger.debug("Upserted %s key=%s id=%s", self.sheet_name, key, stored["id"])
        return stored

    def bulk_import(self, payload: Iterable[Mapping[str, object] | SupportsToDict]) -> int:
        count = 0
        for record in payload:
            self.upsert(record)
            count += 1
        return count

    def query(self, params: Mapping[str, object]) -> pd.DataFrame:
        """Return rows whose columns equal every non-empty value in *params*."""

        frame = self.frame()
        for name, value in params.items():
            if value is None or value == "" or name not in frame.columns:
                continue
            frame = frame[frame[name].map(cell_str) == cell_str(value)]
        return frame.reset_index(drop=True)

    def healthcheck(self) -> PersistHealth:
        issues: list[str] = []
        locked: list[str] = []
        try:
            ensure_structure(self._root)
        except OSError as exc:
            issues.append(f"Failed to ensure root directories: {exc}")

        target_dir = self.path.parent
        writable = target_dir.exists() and os.access(target_dir, os.W_OK | os.X_OK)
        try:
            ensure_workbook(self.path, self.sheet_name, self.columns)
        except (OSError, StoreError) as exc:
            issues.append(str(exc))
        try:
            with workbook_lock(self.path):
                pass
        except StoreLockedError as exc:
            locked.append(str(self.path))
            issues.append(f"Lock acquisition failed: {exc}")

        return PersistHealth(
            dependencies={"pandas": True, "openpyxl": True},
            writable_paths={str(target_dir): writable},
            locked_paths=locked,
            issues=issues,
        )

    # Helpers ----------------------------------------------------------------------

    def rows(self) -> list[dict[str, object]]:
        self.init_store()
        return read_sheet(self.path, self.sheet_name, self.columns)

    def frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows(), columns=list(self.columns))

    def find(self, **criteria: object) -> dict[str, object] | None:
        """Return the first row whose columns equal *criteria* (compared as text)."""

        wanted = {name: cell_str(value) for name, value in criteria.items()}
        for row in self.rows():
            if all(cell_str(row.get(name)) == text for name, text in wanted.items()):
                return row
        return None

    def _key_of(self, payload: Mapping[str, object]) -> tuple[str, ...]:
        return tuple(cell_str(payload.get(name)) for name in self.natural_key)

    @abstractmethod
    def _normalize_record(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        """Validate *record* and return it as sheet-ready values."""
