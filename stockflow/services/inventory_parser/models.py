"""Data models used by the inventory parser service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, MutableMapping, Optional, Tuple, Union


def _decimal_text(value: Decimal) -> str:
    return format(value.normalize(), "f") if value == value.to_integral() else format(value, "f")


@dataclass(frozen=True, slots=True)
class ProductDraft:
    """Product identity read from a product header row.

    ``spare_field`` is the report's column A (the "no data store" column); the
    natural key is ``product_code``.
    """

    spare_field: str
    product_code: str
    description: str
    unit_of_measure: str
    cost: Decimal
    store_location: str
    item_type: str


@dataclass(frozen=True, slots=True)
class LotObservation:
    """One lot row's contribution, tied to the product in effect when it was read.

    ``source_row`` is the 1-based position of the row in the populated grid.
    """

    product_code: str
    lot_no: str
    expiry: Optional[date]
    quantity: Decimal
    store: str
    source_row: int


@dataclass(frozen=True, slots=True)
class ParseContext:
    """State carried from one row to the next within a single file parse."""

    current_item_type: Optional[str] = None
    current_product: Optional[ProductDraft] = None
    store_code: Optional[str] = None
    detail_date: Optional[str] = None


# Row events -----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SummaryLine:
    source_row: int


@dataclass(frozen=True, slots=True)
class CategoryMarker:
    source_row: int
    item_type: str


@dataclass(frozen=True, slots=True)
class ProductHeader:
    source_row: int
    product: ProductDraft
    abbreviated: bool = False


@dataclass(frozen=True, slots=True)
class LotLine:
    source_row: int
    product: ProductDraft
    observation: LotObservation


@dataclass(frozen=True, slots=True)
class Unclassified:
    source_row: int


RowEvent = Union[SummaryLine, CategoryMarker, ProductHeader, LotLine, Unclassified]


# Aggregated output ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StoreBreakdown:
    """Quantities one store contributed to a lot, in row order."""

    observed_quantities: Tuple[Decimal, ...]
    total: Decimal


@dataclass(frozen=True, slots=True)
class AggregatedLot:
    product_code: str
    description: str
    lot_no: str
    expiry: Optional[date]
    total_quantity: Decimal
    store_breakdown: Dict[str, StoreBreakdown]
    product: ProductDraft

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "product_code": self.product_code,
            "description": self.description,
            "lot_no": self.lot_no,
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "total_quantity": _decimal_text(self.total_quantity),
            "unit_of_measure": self.product.unit_of_measure,
            "cost": _decimal_text(self.product.cost),
            "item_type": self.product.item_type or None,
            "store_breakdown": {
                store: {
                    "observed_quantities": [_decimal_text(q) for q in breakdown.observed_quantities],
                    "total": _decimal_text(breakdown.total),
                }
                for store, breakdown in self.store_breakdown.items()
            },
        }


@dataclass(frozen=True, slots=True)
class ParsedFileResult:
    """Outcome of parsing one inventory file.

    ``records`` is the aggregated view; ``observations`` keeps every lot row in
    sheet order for audit.
    """

    detail_date: Optional[str]
    store_code: Optional[str]
    records: List[AggregatedLot] = field(default_factory=list)
    observations: List[LotLine] = field(default_factory=list)

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "detail_date": self.detail_date,
            "store_code": self.store_code,
            "records": [record.to_dict() for record in self.records],
        }


@dataclass(frozen=True, slots=True)
class LotUpsertRequest:
    """What the persistence collaborator needs to upsert one lot for one store."""

    product_code: str
    lot_no: str
    store_location: str
    item_type: str
    description: str
    unit_of_measure: str
    cost: Decimal
    expiry: Optional[date]
    total_quantity: Decimal


__all__ = [
    "AggregatedLot",
    "CategoryMarker",
    "LotLine",
    "LotObservation",
    "LotUpsertRequest",
    "ParseContext",
    "ParsedFileResult",
    "ProductDraft",
    "ProductHeader",
    "RowEvent",
    "StoreBreakdown",
    "SummaryLine",
    "Unclassified",
]
