from __future__ import annotations

import os
from datetime import date, datetime
from decimal import Decimal
from itertools import count
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from stockflow_persist import (
    DateReportStore,
    InventoryQuery,
    LotRecord,
    LotStore,
    ProductRecord,
    ProductStore,
    StoreLockedError,
    StoreValidationError,
    persist_healthcheck,
    query_expired,
    query_inventory,
    query_non_moving,
)
from stockflow_persist.utils.excel_io import workbook_lock


def _ticking_clock(*stamps: str):
    ticks = iter(stamps)
    return lambda: next(ticks)


def _seed(root: Path, lot_clock=None) -> dict[str, str]:
    products = ProductStore(root)
    lots = LotStore(root, clock=lot_clock)
    aspirin = products.find_or_create(
        ProductRecord(product_code="P001", store_location="PHARM01", description="Aspirin", um="tab", cost=Decimal("12.50"), item_type="ยาเม็ด", id_date="d1")
    )
    ceftri = products.find_or_create(
        ProductRecord(product_code="P003", store_location="OPD", description="Ceftriaxone", um="vial", cost=Decimal("85"), item_type="ยาฉีด")
    )
    lots.upsert(LotRecord(product_id=str(aspirin["id"]), lot_no="150624", exp=date(2024, 6, 15), qty=Decimal("120")))
    lots.upsert(LotRecord(product_id=str(aspirin["id"]), lot_no="ไม่ระบุ lot", exp=None, qty=Decimal("5")))
    lots.upsert(LotRecord(product_id=str(ceftri["id"]), lot_no="311299", exp=date(2099, 12, 31), qty=Decimal("7")))
    return {"P001": str(aspirin["id"]), "P003": str(ceftri["id"])}


def test_product_find_or_create_by_code_and_store(store_root: Path) -> None:
    store = ProductStore(store_root)

    first = store.find_or_create(ProductRecord(product_code="P001", store_location="PHARM01", description="Aspirin"))
    again = store.find_or_create(ProductRecord(product_code="P001", store_location="PHARM01", description="Aspirin 81 mg", cost=Decimal("1.5")))
    other = store.find_or_create(ProductRecord(product_code="P001", store_location="OPD"))
    no_store = store.find_or_create(ProductRecord(product_code="P001"))

    assert again["id"] == first["id"]
    assert again["created_at"] == first["created_at"]
    assert len({first["id"], other["id"], no_store["id"]}) == 3

    rows = store.rows()
    assert len(rows) == 3
    stored = store.find(product_code="P001", store_location="PHARM01")
    assert stored is not None
    assert stored["description"] == "Aspirin 81 mg"
    assert stored["cost"] == "1.5"


def test_product_requires_code(store_root: Path) -> None:
    with pytest.raises(StoreValidationError, match="Product code"):
        ProductStore(store_root).find_or_create({"product_code": "  ", "store_location": "PHARM01"})


def test_lot_upsert_keeps_created_at(store_root: Path) -> None:
    clock = _ticking_clock("2024-01-01T00:00:00+00:00", "2024-03-01T00:00:00+00:00")
    lots = LotStore(store_root, clock=clock)

    created = lots.upsert(LotRecord(product_id="abc", lot_no="150624", exp=date(2024, 6, 15), qty=Decimal("100")))
    updated = lots.upsert({"product_id": "abc", "lot_no": "150624", "exp": "", "qty": "120"})

    assert updated["id"] == created["id"]
    assert updated["created_at"] == "2024-01-01T00:00:00+00:00"
    assert updated["updated_at"] == "2024-03-01T00:00:00+00:00"
    (row,) = lots.rows()
    assert row["qty"] == "120"
    assert row["exp"] == ""


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"product_id": "", "lot_no": "L1"}, "product_id"),
        ({"product_id": "abc", "lot_no": " "}, "Lot number"),
        ({"product_id": "abc", "lot_no": "L1", "qty": "lots"}, "Invalid qty"),
        ({"product_id": "abc", "lot_no": "L1", "exp": "31/12/2024"}, "Invalid exp"),
    ],
)
def test_lot_validation(store_root: Path, payload: dict, message: str) -> None:
    with pytest.raises(StoreValidationError, match=message):
        LotStore(store_root).upsert(payload)


def test_date_report_find_or_create(store_root: Path) -> None:
    store = DateReportStore(store_root)

    first = store.find_or_create("31 ธันวาคม 2567")
    second = store.find_or_create(" 31 ธันวาคม 2567 ")
    other = store.find_or_create("30 มิถุนายน 2568")

    assert first["id"] == second["id"]
    assert other["id"] != first["id"]
    assert len(store.rows()) == 2


def test_query_inventory_filters(store_root: Path) -> None:
    _seed(store_root)

    everything = query_inventory(root=store_root)
    assert list(zip(everything["product_code"], everything["lot_no"])) == [
        ("P001", "150624"),
        ("P001", "ไม่ระบุ lot"),
        ("P003", "311299"),
    ]
    assert everything.loc[0, "qty"] == pytest.approx(120.0)

    pharm = query_inventory(InventoryQuery(store_location="PHARM01"), root=store_root)
    assert set(pharm["product_code"]) == {"P001"}
    injections = query_inventory({"item_type": "ยาฉีด"}, root=store_root)
    assert list(injections["lot_no"]) == ["311299"]
    searched = query_inventory(InventoryQuery(search="ceftri"), root=store_root)
    assert list(searched["product_code"]) == ["P003"]
    by_report = query_inventory(InventoryQuery(date_report_id="d1"), root=store_root)
    assert set(by_report["product_code"]) == {"P001"}


def test_query_inventory_empty_store(store_root: Path) -> None:
    assert query_inventory(root=store_root).empty


def test_query_expired(store_root: Path) -> None:
    _seed(store_root)

    expired = query_expired(date(2025, 1, 1), root=store_root)

    assert list(expired.columns) == ["product_code", "description", "lot_no", "exp", "total_qty"]
    assert len(expired) == 1
    row = expired.iloc[0]
    assert (row["product_code"], row["lot_no"], row["exp"]) == ("P001", "150624", date(2024, 6, 15))
    assert query_expired(date(2024, 6, 15), root=store_root).empty


def test_query_non_moving(store_root: Path) -> None:
    stamps = count()
    dates = ["2024-01-10T00:00:00+00:00", "2024-05-01T00:00:00+00:00", "2024-06-20T00:00:00+00:00"]
    _seed(store_root, lot_clock=lambda: dates[next(stamps)])

    stale = query_non_moving(datetime(2024, 8, 1), months=6, root=store_root)

    assert list(stale["lot_no"]) == ["150624"]
    assert stale.iloc[0]["total_qty"] == pytest.approx(120.0)
    assert len(query_non_moving(datetime(2025, 1, 1), months=6, root=store_root)) == 3
    assert query_non_moving(datetime(2024, 8, 1), months=12, root=store_root).empty


def test_outdated_header_is_realigned(store_root: Path) -> None:
    store = ProductStore(store_root)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "products"
    sheet.append(["product_code", "id", "description"])
    sheet.append(["P001", "legacy-id", "Aspirin"])
    workbook.save(store.path)

    store.init_store()

    header = next(load_workbook(store.path)["products"].iter_rows(max_row=1, values_only=True))
    assert list(header) == list(store.columns)
    found = store.find(product_code="P001")
    assert found is not None and found["id"] == "legacy-id"


def test_healthcheck_reports_live_lock(store_root: Path) -> None:
    assert persist_healthcheck(store_root).is_healthy()

    store = LotStore(store_root)
    lock_path = store.path.with_suffix(store.path.suffix + ".lock")
    lock_path.write_text(str(os.getpid()), encoding="ascii")
    try:
        report = persist_healthcheck(store_root)
    finally:
        lock_path.unlink()

    assert not report.is_healthy()
    assert report.locked_paths == [str(store.path)]


def test_stale_lock_is_reclaimed(store_root: Path) -> None:
    store = LotStore(store_root)
    store.init_store()
    lock_path = store.path.with_suffix(store.path.suffix + ".lock")
    lock_path.write_text("999999999", encoding="ascii")

    with workbook_lock(store.path):
        assert lock_path.read_text(encoding="ascii") == str(os.getpid())
    assert not lock_path.exists()


def test_live_lock_blocks_writer(store_root: Path) -> None:
    store = LotStore(store_root)
    store.init_store()
    lock_path = store.path.with_suffix(store.path.suffix + ".lock")
    lock_path.write_text(str(os.getpid()), encoding="ascii")
    try:
        with pytest.raises(StoreLockedError):
            store.upsert(LotRecord(product_id="abc", lot_no="L1"))
    finally:
        lock_path.unlink()


def test_bulk_import_and_query(store_root: Path) -> None:
    store = ProductStore(store_root)

    count = store.bulk_import(
        [
            ProductRecord(product_code="P001", store_location="PHARM01"),
            {"product_code": "P002", "store_location": "PHARM01", "cost": "3"},
            {"product_code": "P001", "store_location": "PHARM01", "description": "Aspirin"},
        ]
    )

    assert count == 3
    frame = store.query({"store_location": "PHARM01", "item_type": None})
    assert sorted(frame["product_code"]) == ["P001", "P002"]
    assert list(store.query({"product_code": "P002"})["cost"]) == ["3"]
