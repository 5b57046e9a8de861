"""
RESPONSIBILITIES
- Run every store's healthcheck and fold the results into one report.
"""

from __future__ import annotations

from pathlib import Path

from stockflow_persist.stores.base_store import PersistHealth
from stockflow_persist.stores.date_report_store import DateReportStore
from stockflow_persist.stores.lot_store import LotStore
from stockflow_persist.stores.product_store import ProductStore


def persist_healthcheck(root: Path | None = None) -> PersistHealth:
    report = PersistHealth(dependencies={}, writable_paths={}, locked_paths=[])
    for store_cls in (ProductStore, LotStore, DateReportStore):
        report = report.merge(store_cls(root).healthcheck())
    return report
