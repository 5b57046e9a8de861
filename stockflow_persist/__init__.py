"""
Persistence facade exposing the XLSX-backed inventory stores.
"""

from .health import persist_healthcheck
from .queries import query_expired, query_inventory, query_non_moving
from .schemas.inventory import DateReportRecord, InventoryQuery, LotRecord, ProductRecord
from .stores.base_store import (
    PersistHealth,
    StoreError,
    StoreInitializationError,
    StoreLockedError,
    StoreValidationError,
)
from .stores.date_report_store import DateReportStore
from .stores.lot_store import LotStore
from .stores.product_store import ProductStore

__all__ = [
    "DateReportRecord",
    "DateReportStore",
    "InventoryQuery",
    "LotRecord",
    "LotStore",
    "PersistHealth",
    "ProductRecord",
    "ProductStore",
    "StoreError",
    "StoreInitializationError",
    "StoreLockedError",
    "StoreValidationError",
    "persist_healthcheck",
    "query_expired",
    "query_inventory",
    "query_non_moving",
]
