"""
RESPONSIBILITIES
- Record each distinct report period ("detail date") in ~/StockFlow/store/date_reports_store.xlsx.
PROCESS OVERVIEW
1. find_or_create() returns the existing row for a detail_date or inserts one.
"""

from __future__ import annotations

from typing import Mapping

from stockflow_persist.schemas.inventory import DateReportRecord
from stockflow_persist.stores.base_store import StoreValidationError, SupportsToDict, cell_str
from stockflow_persist.stores.sheet_store import SheetStore

DATE_REPORTS_WORKBOOK = "date_reports_store.xlsx"
DATE_REPORTS_SHEET_NAME = "date_report"
DATE_REPORTS_COLUMNS: tuple[str, ...] = ("id", "detail_date", "created_at", "updated_at")


class DateReportStore(SheetStore):
    workbook = DATE_REPORTS_WORKBOOK
    sheet_name = DATE_REPORTS_SHEET_NAME
    columns = DATE_REPORTS_COLUMNS
    natural_key = ("detail_date",)

    def find_or_create(self, detail_date: str) -> dict[str, object]:
        existing = self.find(detail_date=detail_date.strip())
        if existing is not None:
            return existing
        return self.upsert(DateReportRecord(detail_date))

    def _normalize_record(self, record: Mapping[str, object] | SupportsToDict) -> dict[str, object]:
        payload = record.to_dict() if isinstance(record, DateReportRecord) else dict(record)
        detail_date = cell_str(payload.get("detail_date"))
        if not detail_date:
            raise StoreValidationError("detail_date is required")
        return {"detail_date": detail_date}
