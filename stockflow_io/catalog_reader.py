"""Readers for header-anchored product and product-lot sheets."""

# Module responsibilities:
# - Locate columns by their (case-insensitive) header names instead of position.
# - Skip rows that lack the natural key; default or null-out unparsable values.
# - Read sheets through pandas with object dtype so codes are never coerced to numbers.

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from .cleaning import is_missing, parse_decimal, strip_brackets
from .schema import ProductLotRow, ProductRow
from .utils.log import get_logger

logger = get_logger("catalog_reader")


def read_table(path: Path, sheet: Union[str, int] = 0) -> pd.DataFrame:
    """Load one sheet as raw objects so codes like ``"00123"`` keep their leading zeros.

    Raises:
        FileNotFoundError: When the workbook does not exist.
        ValueError: When pandas cannot read the requested sheet.
    """

    if not path.exists():
        raise FileNotFoundError(f"Source workbook not found: {path}")
    try:
        frame = pd.read_excel(path, sheet_name=sheet, dtype=object)
    except ValueError as exc:
        logger.error("Failed to read Excel workbook", extra={"path": str(path), "error": str(exc)})
        raise
    logger.debug("Sheet loaded", extra={"path": str(path), "sheet": sheet, "rows": len(frame.index)})
    return frame


def _header_index(frame: pd.DataFrame) -> Dict[str, object]:
    return {str(col).strip().upper(): col for col in frame.columns}


def _text(row: pd.Series, column: Optional[object]) -> str:
    if column is None:
        return ""
    value = row[column]
    if is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parse_exp(value: object) -> Optional[date]:
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    parsed = pd.to_datetime(value.strip(), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def read_products(path: Path) -> List[ProductRow]:
    """Read a products sheet keyed by ``PRODUCT_CODE``.

    Missing optional columns read as empty text / zero cost.
    """

    frame = read_table(path)
    headers = _header_index(frame)
    code_col = headers.get("PRODUCT_CODE")
    desc_col = headers.get("DESCRIPTION")
    um_col = headers.get("UM")
    cost_col = headers.get("COST")

    records: List[ProductRow] = []
    for _, row in frame.iterrows():
        product_code = _text(row, code_col)
        if not product_code:
            continue
        records.append(
            ProductRow(
                product_code=product_code,
                description=_text(row, desc_col),
                um=_text(row, um_col),
                cost=parse_decimal(row[cost_col]) if cost_col is not None else parse_decimal(None),
            )
        )

    logger.info("Products sheet parsed", extra={"path": str(path), "records": len(records)})
    return records


def read_product_lots(path: Path) -> List[ProductLotRow]:
    """Read a product-lot sheet keyed by ``PRODUCT_CODE`` and ``LOT_NO``."""

    frame = read_table(path)
    headers = _header_index(frame)
    code_col = headers.get("PRODUCT_CODE")
    lot_col = headers.get("LOT_NO")
    exp_col = headers.get("EXP")
    store_col = headers.get("STORE")
    qty_col = headers.get("QTY")

    records: List[ProductLotRow] = []
    for _, row in frame.iterrows():
        product_code = _text(row, code_col)
        if not product_code:
            continue
        lot_no = _text(row, lot_col)
        if not lot_no:
            continue
        store_text = _text(row, store_col)
        records.append(
            ProductLotRow(
                product_code=product_code,
                lot_no=lot_no,
                exp=_parse_exp(row[exp_col]) if exp_col is not None else None,
                store=strip_brackets(store_text) or None,
                qty=parse_decimal(row[qty_col], None) if qty_col is not None else None,
            )
        )

    logger.info("Product lots sheet parsed", extra={"path": str(path), "records": len(records)})
    return records
