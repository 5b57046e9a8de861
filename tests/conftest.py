from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Sequence

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Logs and default stores must never land in the real home directory.
os.environ["STOCKFLOW_ROOT"] = tempfile.mkdtemp(prefix="stockflow-tests-")

WorkbookFactory = Callable[..., Path]


def write_rows(path: Path, rows: Iterable[Sequence[object]], *, title: str = "Sheet1") -> Path:
    """Write *rows* to the first worksheet of a new workbook at *path*."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = title
    for row in rows:
        worksheet.append(list(row))
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    return path


@pytest.fixture()
def make_workbook(tmp_path: Path) -> WorkbookFactory:
    def _factory(rows: Iterable[Sequence[object]], name: str = "report.xlsx") -> Path:
        return write_rows(tmp_path / name, rows)

    return _factory


@pytest.fixture()
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "workspace"


# A small "non-moving stock" report: header row, two categories, abbreviated product,
# a grand-total footer and the usual formatting noise.
_REPORT_ROWS: list[list[object]] = [
    ["ประจำวันงวดวันที่ 31 ธันวาคม 2567", None, None, None, None, None, "คลัง [PHARM01]"],
    ["ยาเม็ด"],
    ["01", "P001", "Aspirin 81 mg", "tab", ".", "12.50"],
    ["150624", "150624", 100],
    ["150624", None, 20],
    [".", "4292552277", 5],
    ["01", "P002", "Paracetamol 500 mg", "tab", ".", "1,250.00"],
    ["A77001", "2025-01-31", "40"],
    ["ยาฉีด"],
    ["02", "P003", "Ceftriaxone 1 g", "vial", ".", 85],
    ["311299", "311299", 7],
    ["X900"],
    ["000001", "010126", 3],
    [None, "TOTAL", 175],
    ["GRAND TOTAL", None, 175],
]


@pytest.fixture()
def report_rows() -> list[list[object]]:
    return [list(row) for row in _REPORT_ROWS]


@pytest.fixture()
def report_path(make_workbook: WorkbookFactory, report_rows: list[list[object]]) -> Path:
    return make_workbook(report_rows)
