from __future__ import annotations

from pathlib import Path

import pytest

from stockflow.core.pipeline import NO_RECORDS_MESSAGE, InventoryImporter
from stockflow_persist import DateReportStore, LotStore, ProductStore, StoreValidationError
from stockflow_persist.stores import sheet_store


class _RejectingLotStore(LotStore):
    """Lot store that refuses one lot number, standing in for a bad row."""

    def __init__(self, root: Path, rejected: str) -> None:
        super().__init__(root)
        self.rejected = rejected

    def upsert(self, record):
        if record.lot_no == self.rejected:
            raise StoreValidationError(f"rejected {record.lot_no}")
        return super().upsert(record)


def test_import_report(report_path: Path, store_root: Path) -> None:
    summary = InventoryImporter(root=store_root).import_files([report_path])

    assert summary.total_files == 1
    assert summary.total_records == 5
    assert summary.success_count == 5
    assert summary.error_count == 0
    assert summary.message == "Processed 1 file(s) with 5 records: 5 successful, 0 failed"

    products = ProductStore(store_root).rows()
    assert sorted(row["product_code"] for row in products) == ["P001", "P002", "P003", "X900"]
    assert {row["store_location"] for row in products} == {"PHARM01"}

    (report,) = DateReportStore(store_root).rows()
    assert report["detail_date"] == "31 ธันวาคม 2567"
    assert {row["id_date"] for row in products} == {report["id"]}

    lots = {row["lot_no"]: row for row in LotStore(store_root).rows()}
    assert len(lots) == 5
    assert lots["150624"]["qty"] == "120"
    assert lots["150624"]["exp"] == "2024-06-15"
    assert lots["000001"]["exp"] == "2026-01-01"


def test_reimport_updates_in_place(report_path: Path, store_root: Path) -> None:
    importer = InventoryImporter(root=store_root)
    importer.import_files([report_path])
    first_ids = {row["id"] for row in LotStore(store_root).rows()}

    summary = importer.import_files([report_path])

    assert summary.success_count == 5
    assert {row["id"] for row in LotStore(store_root).rows()} == first_ids
    assert len(ProductStore(store_root).rows()) == 4
    assert len(DateReportStore(store_root).rows()) == 1


def test_bad_file_does_not_abort_batch(report_path: Path, store_root: Path, tmp_path: Path) -> None:
    missing = tmp_path / "missing.xlsx"

    summary = InventoryImporter(root=store_root).import_files([missing, report_path])

    assert summary.total_files == 2
    assert summary.total_records == 5
    assert summary.success_count == 5
    assert summary.error_count == 1
    failure = summary.results[0]
    assert failure.filename == "missing.xlsx"
    assert not failure.success
    assert "not found" in (failure.error or "")


def test_import_buffers(report_path: Path, store_root: Path) -> None:
    summary = InventoryImporter(root=store_root).import_buffers(
        [
            ("broken.xlsx", b"definitely not a zip archive"),
            ("report.xlsx", report_path.read_bytes()),
        ]
    )

    assert summary.success_count == 5
    assert summary.error_count == 1
    assert summary.results[0].filename == "broken.xlsx"
    assert "Failed to load Excel file" in (summary.results[0].error or "")
    assert {item.filename for item in summary.results[1:]} == {"report.xlsx"}


def test_file_without_lots(make_workbook, store_root: Path) -> None:
    path = make_workbook([["ประจำวันงวดวันที่ 31 ธันวาคม 2567"], ["GRAND TOTAL", None, 0]], name="empty.xlsx")

    summary = InventoryImporter(root=store_root).import_files([path])

    assert summary.total_records == 0
    assert summary.error_count == 1
    assert summary.results[0].error == NO_RECORDS_MESSAGE
    assert ProductStore(store_root).rows() == []


def test_failed_record_is_reported_alone(report_path: Path, store_root: Path) -> None:
    importer = InventoryImporter(root=store_root, lot_store=_RejectingLotStore(store_root, "A77001"))

    summary = importer.import_files([report_path])

    assert summary.success_count == 4
    assert summary.error_count == 1
    (failure,) = [item for item in summary.results if not item.success]
    assert (failure.product_code, failure.lot_no) == ("P002", "A77001")
    assert failure.error == "rejected A77001"
    assert len(LotStore(store_root).rows()) == 4


def test_write_failure_mid_batch_is_reported_per_record(
    report_path: Path, store_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_write = sheet_store.write_sheet
    calls = {"count": 0}

    def flaky_write(*args, **kwargs):
        calls["count"] += 1
        # call 1 stores the report date, call 2 the first product
        if calls["count"] == 2:
            raise PermissionError("disk is read-only")
        return real_write(*args, **kwargs)

    monkeypatch.setattr(sheet_store, "write_sheet", flaky_write)

    summary = InventoryImporter(root=store_root).import_files([report_path, report_path])

    assert summary.total_files == 2
    assert summary.total_records == 10
    assert summary.success_count == 9
    assert summary.error_count == 1
    (failure,) = [item for item in summary.results if not item.success]
    assert (failure.product_code, failure.lot_no) == ("P001", "150624")
    assert failure.error == "disk is read-only"
    assert len(LotStore(store_root).rows()) == 5
