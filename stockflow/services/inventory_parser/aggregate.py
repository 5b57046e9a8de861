"""Fold lot lines into one record per (product_code, lot_no)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .models import AggregatedLot, LotLine, ProductDraft, StoreBreakdown

LotKey = Tuple[str, str]


@dataclass
class _LotAccumulator:
    product: ProductDraft
    lot_no: str
    expiry: Optional[date] = None
    per_store: Dict[str, List[Decimal]] = field(default_factory=dict)

    def add(self, line: LotLine) -> None:
        observation = line.observation
        self.product = line.product
        if observation.expiry is not None:
            self.expiry = observation.expiry
        self.per_store.setdefault(observation.store, []).append(observation.quantity)

    def build(self) -> AggregatedLot:
        breakdown = {
            store: StoreBreakdown(tuple(quantities), sum(quantities, Decimal("0")))
            for store, quantities in self.per_store.items()
        }
        total = sum((item.total for item in breakdown.values()), Decimal("0"))
        return AggregatedLot(
            product_code=self.product.product_code,
            description=self.product.description,
            lot_no=self.lot_no,
            expiry=self.expiry,
            total_quantity=total,
            store_breakdown=breakdown,
            product=self.product,
        )


def _sort_key(record: AggregatedLot) -> Tuple[str, bool, date]:
    return (record.product_code, record.expiry is None, record.expiry or date.min)


def aggregate_lots(lines: Iterable[LotLine]) -> List[AggregatedLot]:
    """Group lot lines by natural key and total them per store.

    Descriptive product fields come from the last line seen for a key, and the
    expiry is the last non-empty one observed. The result is sorted by product
    code, then expiry with undated lots last.
    """

    groups: Dict[LotKey, _LotAccumulator] = {}
    for line in lines:
        key = (line.observation.product_code, line.observation.lot_no)
        accumulator = groups.get(key)
        if accumulator is None:
            accumulator = groups[key] = _LotAccumulator(line.product, key[1])
        accumulator.add(line)

    return sorted((acc.build() for acc in groups.values()), key=_sort_key)


__all__ = ["aggregate_lots"]
