"""Spreadsheet grid input helpers."""

# Module responsibilities:
# - Open an inventory workbook (bytes, path or file object) and read its first worksheet.
# - Normalize every cell to a plain scalar so row classification never sees openpyxl types.
# - Translate "not a workbook" failures into FileFormatError for per-file isolation upstream.

from __future__ import annotations

from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, List, Tuple, Union

from openpyxl import load_workbook
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.workbook.workbook import Workbook

from stockflow.core.errors import FileFormatError

from .utils.log import get_logger

logger = get_logger("grid_reader")

Cell = Union[str, int, float, datetime, date, None]
Row = Tuple[Cell, ...]
GridSource = Union[bytes, bytearray, Path, str, BinaryIO]


def _flatten_rich_text(value: CellRichText) -> str:
    parts: List[str] = []
    for block in value:
        parts.append(block.text if isinstance(block, TextBlock) else str(block))
    return "".join(parts)


def normalize_cell(value: object) -> Cell:
    """Reduce a raw openpyxl value to text, number, date, or ``None``."""

    if value is None:
        return None
    if isinstance(value, CellRichText):
        value = _flatten_rich_text(value)
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, (int, float, datetime, date)):
        return value
    text = str(value).strip()
    return text or None


def cell_text(value: Cell) -> str:
    """Render a normalized cell the way it reads on screen (``""`` for empty)."""

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def cell_at(row: Row, index: int) -> Cell:
    """Return the cell at *index*; cells past the populated width are empty."""

    return row[index] if index < len(row) else None


def _trim_trailing(cells: List[Cell]) -> Row:
    end = len(cells)
    while end and cells[end - 1] is None:
        end -= 1
    return tuple(cells[:end])


def _open_workbook(source: GridSource) -> Workbook:
    if isinstance(source, (bytes, bytearray)):
        handle: Union[BinaryIO, Path] = BytesIO(bytes(source))
    elif isinstance(source, (str, Path)):
        handle = Path(source)
        if not handle.exists():
            raise FileNotFoundError(f"Source workbook not found: {handle}")
    else:
        handle = source

    try:
        return load_workbook(handle, data_only=True, rich_text=True)
    except Exception as exc:  # noqa: BLE001 - openpyxl surfaces zip/xml/format errors alike
        logger.error("Failed to open workbook", extra={"error": str(exc)})
        raise FileFormatError(f"Failed to load Excel file: {exc}") from exc


def read_grid(source: GridSource) -> List[Row]:
    """Load the first worksheet of a workbook as a list of normalized rows.

    Args:
        source: Workbook bytes, a path, or a binary file object.

    Returns:
        Rows of normalized cells. Rows with no populated cell are skipped and
        trailing empty cells are dropped.

    Raises:
        FileNotFoundError: When a path is given and does not exist.
        FileFormatError: When the buffer is not a workbook or has no worksheets.
    """

    workbook = _open_workbook(source)
    try:
        if not workbook.worksheets:
            raise FileFormatError("Excel file has no worksheets")
        worksheet = workbook.worksheets[0]

        rows: List[Row] = []
        for raw_values in worksheet.iter_rows(values_only=True):
            row = _trim_trailing([normalize_cell(value) for value in raw_values])
            if row:
                rows.append(row)
    finally:
        workbook.close()

    logger.info(
        "Worksheet grid loaded",
        extra={"sheet": worksheet.title, "rows": len(rows)},
    )
    return rows
