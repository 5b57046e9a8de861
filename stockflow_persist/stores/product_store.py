"""
RESPONSIBILITIES
- Keep the product catalogue in ~/StockFlow/store/products_store.xlsx.
- Find-or-create products by (product_code, store_location).
PROCESS OVERVIEW
1. find_or_create() looks the natural key up and refreshes descriptive fields when found.
2. A missing product is inserted with a fresh id.
3. query() filters rows by exact column values.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Mapping

from stockflow_persist.schemas.inventory import ProductRecord, decimal_text
from stockflow_persist.stores.base_store import StoreValidationError, SupportsToDict, cell_str
from stockflow_persist.stores.sheet_store import SheetStore

PRODUCTS_WORKBOOK = "products_store.xlsx"
PRODUCTS_SHEET_NAME = "products"
PRODUCTS_COLUMNS: tuple[str, ...] = (
    "id",
    "product_code",
    "store_location",
    "no_data_store",
    "description",
    "um",
    "cost",
    "item_type",
    "id_date",
    "created_at",
    "updated_at",
)


class ProductStore(SheetStore):
    """Products keyed by code and store location (an empty location is its own key)."""

    workbook = PRODUCTS_WORKBOOK
    sheet_name = PRODUCTS_SHEET_NAME
    columns = PRODUCTS_COLUMNS
    natural_key = ("product_code", "store_location")

    def find_or_create(self, record: ProductRecord | Mapping[str, object]) -> dict[str, object]:
        return self.upsert(record)

    def _normalize_record(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        payload = record.to_dict() if isinstance(record, ProductRecord) else dict(record)
        code = cell_str(payload.get("product_code"))
        if not code:
            raise StoreValidationError("Product code is missing or empty")
        raw_cost = cell_str(payload.get("cost")) or "0"
        try:
            cost = Decimal(raw_cost)
        except InvalidOperation as exc:
            raise StoreValidationError(f"Invalid cost: {raw_cost}") from exc
        return {
            "product_code": code,
            "store_location": cell_str(payload.get("store_location")),
            "no_data_store": cell_str(payload.get("no_data_store")),
            "description": cell_str(payload.get("description")),
            "um": cell_str(payload.get("um")),
            "cost": decimal_text(cost),
            "item_type": cell_str(payload.get("item_type")),
            "id_date": cell_str(payload.get("id_date")),
        }
