"""
RESPONSIBILITIES
- Provide typed containers for products, lots, report dates and inventory filters.
- Serialize decimals and dates to the text form the XLSX stores keep.
PROCESS OVERVIEW
1. The importer builds ProductRecord/LotRecord from parsed upsert requests.
2. to_dict() prepares canonical text payloads (ISO dates, plain decimals).
3. Stores validate the dict and merge it by natural key.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, MutableMapping


def decimal_text(value: Decimal) -> str:
    if value == value.to_integral():
        return format(value.quantize(Decimal(1)), "f")
    return format(value.normalize(), "f")


def iso_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()


@dataclass(slots=True)
class ProductRecord:
    product_code: str
    store_location: str = ""
    no_data_store: str = ""
    description: str = ""
    um: str = ""
    cost: Decimal = Decimal("0")
    item_type: str = ""
    id_date: str = ""

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "product_code": self.product_code.strip(),
            "store_location": self.store_location.strip(),
            "no_data_store": self.no_data_store,
            "description": self.description,
            "um": self.um,
            "cost": decimal_text(self.cost),
            "item_type": self.item_type,
            "id_date": self.id_date,
        }


@dataclass(slots=True)
class LotRecord:
    product_id: str
    lot_no: str
    exp: date | None = None
    qty: Decimal = Decimal("0")

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "product_id": self.product_id,
            "lot_no": self.lot_no.strip(),
            "exp": iso_date(self.exp),
            "qty": decimal_text(self.qty),
        }


@dataclass(slots=True)
class DateReportRecord:
    detail_date: str

    def to_dict(self) -> MutableMapping[str, object]:
        return {"detail_date": self.detail_date.strip()}


@dataclass(slots=True)
class InventoryQuery:
    store_location: str | None = None
    item_type: str | None = None
    search: str | None = None
    date_report_id: str | None = None

    def to_dict(self) -> Mapping[str, object]:
        return {
            "store_location": self.store_location or None,
            "item_type": self.item_type or None,
            "search": self.search.strip() if self.search else None,
            "date_report_id": self.date_report_id or None,
        }
