"""
RESPONSIBILITIES
- Read and rewrite store workbooks through openpyxl.
- Serialize writers with an in-process RLock plus a sibling ``.lock`` file.
PROCESS OVERVIEW
1. workbook_lock() takes the in-process lock, then claims the lock file (reclaiming stale ones).
2. ensure_workbook() creates the sheet/header skeleton or migrates an outdated header.
3. read_sheet() returns rows as dictionaries keyed by the canonical columns.
4. write_sheet() rebuilds the sheet and swaps it in through a temporary file.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from stockflow_persist.stores.base_store import StoreLockedError

LOCK_TIMEOUT_SECONDS = 10

_IN_PROCESS_LOCKS: dict[Path, threading.RLock] = {}
_LOCK_REGISTRY_GUARD = threading.Lock()


def _inprocess_lock(path: Path) -> threading.RLock:
    with _LOCK_REGISTRY_GUARD:
        return _IN_PROCESS_LOCKS.setdefault(path, threading.RLock())


def _lock_owner_alive(lock_path: Path) -> bool:
    try:
        pid = int(lock_path.read_text(encoding="ascii").strip() or "0")
    except (OSError, ValueError):
        return True
    if pid <= 0:
        return False
    if pid == os.getpid():
        return True
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _claim_lock_file(lock_path: Path) -> int:
    try:
        return os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as exc:
        if _lock_owner_alive(lock_path):
            raise StoreLockedError(f"Workbook appears locked: {lock_path}") from exc
    lock_path.unlink(missing_ok=True)
    try:
        return os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as exc:
        raise StoreLockedError(f"Workbook appears locked: {lock_path}") from exc


@contextmanager
def workbook_lock(path: Path) -> Iterator[None]:
    """Hold the writer lock for *path*.

    Not re-entrant: code already holding the lock passes ``use_lock=False``.
    """

    path = path.resolve()
    inproc = _inprocess_lock(path)
    if not inproc.acquire(timeout=LOCK_TIMEOUT_SECONDS):
        raise StoreLockedError(f"Timeout acquiring in-process lock for {path}")
    lock_path = path.with_suffix(path.suffix + ".lock")
    fd: int | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = _claim_lock_file(lock_path)
        os.write(fd, str(os.getpid()).encode("ascii"))
        yield
    finally:
        if fd is not None:
            os.close(fd)
            lock_path.unlink(missing_ok=True)
        inproc.release()


def _atomic_save(workbook: Workbook, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    workbook.save(tmp_path)
    os.replace(tmp_path, path)


def _header_of(worksheet: Worksheet) -> list[str]:
    first = next(worksheet.iter_rows(min_row=1, max_row=1, values_only=True), None)
    return [str(cell).strip() if cell is not None else "" for cell in (first or ())]


def _records(
    values: Iterable[Sequence[object] | None],
    header: Sequence[str],
    columns: Sequence[str],
) -> list[dict[str, object]]:
    positions = {name: idx for idx, name in enumerate(header) if name}
    records: list[dict[str, object]] = []
    for raw in values:
        if not raw or not any(cell is not None and str(cell).strip() for cell in raw):
            continue
        record: dict[str, object] = {}
        for column in columns:
            idx = positions.get(column)
            value = raw[idx] if idx is not None and idx < len(raw) else None
            record[column] = "" if value is None else value
        records.append(record)
    return records


def _fill_sheet(worksheet: Worksheet, rows: Iterable[Mapping[str, object]], columns: Sequence[str]) -> None:
    worksheet.append(list(columns))
    for row in rows:
        worksheet.append([row.get(column, "") for column in columns])


def ensure_workbook(path: Path, sheet_name: str, columns: Sequence[str]) -> None:
    """Create *path* with a *sheet_name* header row, or realign an outdated header."""

    with workbook_lock(path):
        if not path.exists():
            workbook = Workbook()
            worksheet = workbook.active
            worksheet.title = sheet_name
            worksheet.append(list(columns))
            _atomic_save(workbook, path)
            return

        workbook = load_workbook(path)
        try:
            if sheet_name not in workbook.sheetnames:
                workbook.create_sheet(title=sheet_name).append(list(columns))
                _atomic_save(workbook, path)
                return

            worksheet = workbook[sheet_name]
            header = _header_of(worksheet)
            if header == list(columns):
                return

            # columns were added or reordered; carry existing values across by name
            kept = _records(worksheet.iter_rows(min_row=2, values_only=True), header, columns)
            if worksheet.max_row:
                worksheet.delete_rows(1, worksheet.max_row)
            _fill_sheet(worksheet, kept, columns)
            _atomic_save(workbook, path)
        finally:
            workbook.close()


def _read_unlocked(path: Path, sheet_name: str, columns: Sequence[str]) -> list[dict[str, object]]:
    if not path.exists():
        return []
    workbook = load_workbook(path, data_only=True)
    try:
        if sheet_name not in workbook.sheetnames:
            return []
        worksheet = workbook[sheet_name]
        return _records(worksheet.iter_rows(min_row=2, values_only=True), _header_of(worksheet), columns)
    finally:
        workbook.close()


def read_sheet(path: Path, sheet_name: str, columns: Sequence[str], *, use_lock: bool = True) -> list[dict[str, object]]:
    """Return worksheet content as dictionaries keyed by *columns*."""

    if not use_lock:
        return _read_unlocked(path, sheet_name, columns)
    with workbook_lock(path):
        return _read_unlocked(path, sheet_name, columns)


def write_sheet(
    path: Path,
    sheet_name: str,
    rows: Iterable[Mapping[str, object]],
    columns: Sequence[str],
    *,
    use_lock: bool = True,
) -> None:
    """Replace the workbook at *path* with a single sheet holding *rows*."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_name
    _fill_sheet(worksheet, rows, columns)
    if not use_lock:
        _atomic_save(workbook, path)
        return
    with workbook_lock(path):
        _atomic_save(workbook, path)
