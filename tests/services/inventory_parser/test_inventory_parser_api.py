from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from stockflow.config import UNSPECIFIED_LOT
from stockflow.core.errors import FileFormatError
from stockflow.services.inventory_parser import parse_inventory_file, parse_rows, to_upsert_requests


def test_category_product_and_sentinel_lot(make_workbook) -> None:
    path = make_workbook(
        [
            ["หมวด A"],
            ["01", "P001", "Aspirin", "tab", ".", "12.50"],
            ["240126", "4292552277", "100", "", "", ""],
        ]
    )

    result = parse_inventory_file(path)

    assert len(result.records) == 1
    record = result.records[0]
    assert record.product_code == "P001"
    assert record.description == "Aspirin"
    assert record.lot_no == "240126"
    assert record.expiry is None
    assert record.total_quantity == Decimal("100")
    assert record.product.item_type == "หมวด A"
    assert record.product.cost == Decimal("12.50")


def test_full_report(report_path) -> None:
    result = parse_inventory_file(report_path)

    assert result.detail_date == "31 ธันวาคม 2567"
    assert result.store_code == "PHARM01"
    assert [(r.product_code, r.lot_no, r.expiry, r.total_quantity) for r in result.records] == [
        ("P001", "150624", date(2024, 6, 15), Decimal("120")),
        ("P001", UNSPECIFIED_LOT, None, Decimal("5")),
        ("P002", "A77001", date(2025, 1, 31), Decimal("40")),
        ("P003", "311299", date(2099, 12, 31), Decimal("7")),
        ("X900", "000001", date(2026, 1, 1), Decimal("3")),
    ]
    assert len(result.observations) == 6
    assert result.records[0].store_breakdown["PHARM01"].observed_quantities == (Decimal("100"), Decimal("20"))
    assert result.records[1].product.item_type == "ยาเม็ด"
    assert result.records[3].product.item_type == "ยาฉีด"
    assert result.records[4].product.item_type == "ยาฉีด"


def test_grand_total_rows_contribute_nothing(report_rows) -> None:
    result = parse_rows([tuple(row) for row in report_rows])

    codes = {r.product_code for r in result.records}
    assert "GRAND TOTAL" not in codes
    assert sum(r.total_quantity for r in result.records) == Decimal("175")


def test_parsing_is_deterministic(report_path) -> None:
    data = report_path.read_bytes()

    assert parse_inventory_file(data) == parse_inventory_file(data)


def test_header_only_sheet_is_empty_success(make_workbook) -> None:
    path = make_workbook([["ประจำวันงวดวันที่ 1 มกราคม 2568", None, None, None, None, None, "[PHARM01]"]])

    result = parse_inventory_file(path)

    assert result.records == []
    assert result.detail_date == "1 มกราคม 2568"


def test_non_spreadsheet_buffer_raises() -> None:
    with pytest.raises(FileFormatError):
        parse_inventory_file(b"%PDF-1.7 not a workbook")


def test_upsert_requests_one_per_lot_and_store(report_path) -> None:
    requests = to_upsert_requests(parse_inventory_file(report_path))

    assert len(requests) == 5
    first = requests[0]
    assert (first.product_code, first.lot_no, first.store_location) == ("P001", "150624", "PHARM01")
    assert first.total_quantity == Decimal("120")
    assert first.item_type == "ยาเม็ด"
    assert first.unit_of_measure == "tab"
    assert first.cost == Decimal("12.50")


def test_result_to_dict(report_path) -> None:
    payload = parse_inventory_file(report_path).to_dict()

    first = payload["records"][0]
    assert first["expiry"] == "2024-06-15"
    assert first["total_quantity"] == "120"
    assert first["cost"] == "12.50"
    assert first["store_breakdown"]["PHARM01"]["observed_quantities"] == ["100", "20"]
