"""
RESPONSIBILITIES
- Join products and lots into the inventory views the CLI reports on.
- Answer the "expired" and "non-moving" questions over stored lots.
PROCESS OVERVIEW
1. _lots_with_products() merges lots onto their products by product id.
2. query_inventory() filters the joined frame by store, item type, search text or report date.
3. query_expired() keeps lots whose expiry falls before the reference date.
4. query_non_moving() groups by product_code/lot_no and keeps groups not updated within N months.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Mapping

import pandas as pd

from stockflow_persist.schemas.inventory import InventoryQuery
from stockflow_persist.stores.lot_store import LotStore
from stockflow_persist.stores.product_store import ProductStore

INVENTORY_COLUMNS: tuple[str, ...] = (
    "product_code",
    "description",
    "um",
    "cost",
    "item_type",
    "store_location",
    "id_date",
    "lot_no",
    "exp",
    "qty",
    "updated_at",
)
EXPIRED_COLUMNS: tuple[str, ...] = ("product_code", "description", "lot_no", "exp", "total_qty")
NON_MOVING_COLUMNS: tuple[str, ...] = (
    "product_code",
    "description",
    "lot_no",
    "exp",
    "last_update",
    "total_qty",
)


def _lots_with_products(root: Path | None) -> pd.DataFrame:
    products = ProductStore(root).frame()
    lots = LotStore(root).frame()
    if products.empty or lots.empty:
        return pd.DataFrame(columns=list(INVENTORY_COLUMNS))

    products = products.rename(columns={"id": "product_id"}).drop(columns=["created_at", "updated_at"])
    lots = lots.drop(columns=["id", "created_at"])
    for frame in (products, lots):
        frame["product_id"] = frame["product_id"].astype(str)
    joined = lots.merge(products, on="product_id", how="inner")

    joined["qty"] = pd.to_numeric(joined["qty"], errors="coerce").fillna(0.0)
    joined["cost"] = pd.to_numeric(joined["cost"], errors="coerce").fillna(0.0)
    joined["exp"] = pd.to_datetime(joined["exp"], errors="coerce").dt.date
    for column in ("product_code", "description", "um", "item_type", "store_location", "id_date", "lot_no"):
        joined[column] = joined[column].astype(str)
    return joined[list(INVENTORY_COLUMNS)]


def query_inventory(params: InventoryQuery | Mapping[str, object] | None = None, *, root: Path | None = None) -> pd.DataFrame:
    filters = params.to_dict() if isinstance(params, InventoryQuery) else dict(params or {})
    frame = _lots_with_products(root)
    if frame.empty:
        return frame

    store_location = filters.get("store_location")
    if store_location:
        frame = frame[frame["store_location"] == str(store_location)]
    item_type = filters.get("item_type")
    if item_type:
        frame = frame[frame["item_type"] == str(item_type)]
    date_report_id = filters.get("date_report_id")
    if date_report_id:
        frame = frame[frame["id_date"] == str(date_report_id)]
    search = filters.get("search")
    if search:
        needle = str(search).lower()
        matches = frame["product_code"].str.lower().str.contains(needle, regex=False) | frame[
            "description"
        ].str.lower().str.contains(needle, regex=False)
        frame = frame[matches]

    frame = frame.sort_values(["product_code", "lot_no"], kind="stable")
    return frame.reset_index(drop=True)


def query_expired(as_of: date | None = None, *, root: Path | None = None) -> pd.DataFrame:
    """Lots whose expiry is strictly before *as_of* (today by default), earliest first."""

    reference = as_of or date.today()
    frame = _lots_with_products(root)
    if frame.empty:
        return pd.DataFrame(columns=list(EXPIRED_COLUMNS))

    frame = frame[frame["exp"].notnull()]
    frame = frame[frame["exp"] < reference]
    frame = frame.rename(columns={"qty": "total_qty"})
    frame = frame.sort_values("exp", kind="stable")
    return frame[list(EXPIRED_COLUMNS)].reset_index(drop=True)


def _as_utc_timestamp(value: date | datetime | None) -> pd.Timestamp:
    stamp = pd.Timestamp(value) if value is not None else pd.Timestamp.now(tz="UTC")
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    return stamp


def query_non_moving(
    as_of: date | datetime | None = None,
    months: int = 6,
    *,
    root: Path | None = None,
) -> pd.DataFrame:
    """Product/lot groups whose latest update is older than *months* before *as_of*."""

    frame = _lots_with_products(root)
    if frame.empty:
        return pd.DataFrame(columns=list(NON_MOVING_COLUMNS))

    cutoff = _as_utc_timestamp(as_of) - pd.DateOffset(months=months)
    frame = frame.assign(last_update=pd.to_datetime(frame["updated_at"], utc=True, errors="coerce"))
    grouped = (
        frame.groupby(["product_code", "lot_no"], sort=False)
        .agg(
            description=("description", "first"),
            exp=("exp", "first"),
            last_update=("last_update", "max"),
            total_qty=("qty", "sum"),
        )
        .reset_index()
    )
    stale = grouped[grouped["last_update"].notnull() & (grouped["last_update"] < cutoff)]
    stale = stale.sort_values("last_update", kind="stable")
    return stale[list(NON_MOVING_COLUMNS)].reset_index(drop=True)
