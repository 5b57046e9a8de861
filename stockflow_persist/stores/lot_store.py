"""
RESPONSIBILITIES
- Keep product lots in ~/StockFlow/store/lots_store.xlsx.
- Upsert lots by (product_id, lot_no), refreshing expiry and quantity.
PROCESS OVERVIEW
1. upsert() validates the lot, keeps created_at and bumps updated_at on every write.
2. updated_at doubles as the "last seen in a report" stamp used by non-moving queries.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Mapping

from stockflow_persist.schemas.inventory import LotRecord, decimal_text
from stockflow_persist.stores.base_store import StoreValidationError, SupportsToDict, cell_str
from stockflow_persist.stores.sheet_store import SheetStore

LOTS_WORKBOOK = "lots_store.xlsx"
LOTS_SHEET_NAME = "product_lots"
LOTS_COLUMNS: tuple[str, ...] = (
    "id",
    "product_id",
    "lot_no",
    "exp",
    "qty",
    "created_at",
    "updated_at",
)


def _parse_exp(text: str) -> str:
    if not text:
        return ""
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError as exc:
        raise StoreValidationError(f"Invalid exp: {text}") from exc


class LotStore(SheetStore):
    workbook = LOTS_WORKBOOK
    sheet_name = LOTS_SHEET_NAME
    columns = LOTS_COLUMNS
    natural_key = ("product_id", "lot_no")

    def _normalize_record(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        payload = record.to_dict() if isinstance(record, LotRecord) else dict(record)
        product_id = cell_str(payload.get("product_id"))
        if not product_id:
            raise StoreValidationError("product_id is required")
        lot_no = cell_str(payload.get("lot_no"))
        if not lot_no:
            raise StoreValidationError("Lot number is missing or empty")
        raw_qty = cell_str(payload.get("qty")) or "0"
        try:
            qty = Decimal(raw_qty)
        except InvalidOperation as exc:
            raise StoreValidationError(f"Invalid qty: {raw_qty}") from exc
        return {
            "product_id": product_id,
            "lot_no": lot_no,
            "exp": _parse_exp(cell_str(payload.get("exp"))),
            "qty": decimal_text(qty),
        }
