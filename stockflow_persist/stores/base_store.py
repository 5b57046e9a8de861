"""
RESPONSIBILITIES
- Define shared interfaces and exceptions for the XLSX-backed inventory stores.
- Provide id, timestamp and cell-text helpers shared by the stores.
PROCESS OVERVIEW
1. init_store -> resolve the workbook path and ensure the sheet/header skeleton exists.
2. upsert -> merge one record by natural key, stamping created/updated timestamps.
3. bulk_import -> delegate to upsert per record and return the count.
4. query -> filter the rows read from the sheet into a pandas.DataFrame.
5. healthcheck -> verify directory write access and lock availability.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Protocol


class StoreError(RuntimeError):
    """Any failure reading or writing an inventory store workbook."""


class StoreInitializationError(StoreError):
    """The store directory or workbook skeleton could not be created."""


class StoreValidationError(StoreError):
    """A product, lot or report record is missing its key or has an unparsable value."""


class StoreLockedError(StoreError):
    """Another writer holds the workbook lock file."""


@dataclass(slots=True)
class PersistHealth:
    """Health of one or more stores; ``merge`` folds per-store reports together."""

    dependencies: dict[str, bool]
    writable_paths: dict[str, bool]
    locked_paths: list[str]
    issues: list[str] = field(default_factory=list)

    def is_healthy(self) -> bool:
        return not self.issues and all(self.dependencies.values()) and all(
            self.writable_paths.values()
        )

    def merge(self, other: "PersistHealth") -> "PersistHealth":
        return PersistHealth(
            dependencies={**self.dependencies, **other.dependencies},
            writable_paths={**self.writable_paths, **other.writable_paths},
            locked_paths=[*self.locked_paths, *other.locked_paths],
            issues=[*self.issues, *other.issues],
        )


class SupportsToDict(Protocol):
    """Typed protocol for records that offer dict serialization."""

    def to_dict(self) -> MutableMapping[str, object]:
        """Return a dict representation ready for persistence."""


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_record_id() -> str:
    return uuid.uuid4().hex


def cell_str(value: object) -> str:
    """Render a loaded cell as stripped text (``""`` for empty)."""

    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.replace(microsecond=0).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class BaseStore(ABC):
    """Contract shared by the product, lot and date-report stores."""

    sheet_name: str
    columns: tuple[str, ...]

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def init_store(self) -> Path:
        """Ensure backing workbook exists, returning absolute path."""

    @abstractmethod
    def upsert(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        """Merge a single record into the store and return the stored row."""

    @abstractmethod
    def bulk_import(self, payload: Iterable[Mapping[str, object] | SupportsToDict]) -> int:
        """Import multiple records, returning the count of inserted/updated rows."""

    @abstractmethod
    def query(self, params: Mapping[str, object]) -> object:
        """Run a query and return results (usually a pandas.DataFrame)."""

    @abstractmethod
    def healthcheck(self) -> PersistHealth:
        """Run diagnostics for the store and return a structured report."""
