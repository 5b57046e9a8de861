from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from stockflow.config import ParserSettings, default_parser_settings
from stockflow.services.inventory_parser import (
    LotUpsertRequest,
    ParsedFileResult,
    parse_inventory_file,
    to_upsert_requests,
)
from stockflow_persist import (
    DateReportStore,
    LotRecord,
    LotStore,
    ProductRecord,
    ProductStore,
    StoreError,
)

from .errors import StockFlowError
from .logger import get_logger

NO_RECORDS_MESSAGE = "No valid records found in the file"


class ImportRecordResult(BaseModel):
    filename: str
    product_code: str = ""
    lot_no: str = ""
    success: bool
    error: str | None = None


class ImportSummary(BaseModel):
    """Counts for one batch, plus one entry per record (or per failed file)."""

    model_config = ConfigDict(frozen=True)

    total_files: int
    total_records: int
    success_count: int
    error_count: int
    results: list[ImportRecordResult] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Processed {self.total_files} file(s) with {self.total_records} records: "
            f"{self.success_count} successful, {self.error_count} failed"
        )


class InventoryImporter:
    """Parses inventory reports and writes their lots to the stores, one file at a time."""

    def __init__(
        self,
        root: Path | None = None,
        settings: ParserSettings | None = None,
        logger=None,
        product_store: ProductStore | None = None,
        lot_store: LotStore | None = None,
        date_report_store: DateReportStore | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self.settings = settings or default_parser_settings()
        self.products = product_store or ProductStore(root)
        self.lots = lot_store or LotStore(root)
        self.date_reports = date_report_store or DateReportStore(root)

    def import_files(self, paths: Sequence[Path | str]) -> ImportSummary:
        return self._run([(Path(path).name, Path(path)) for path in paths])

    def import_buffers(self, buffers: Iterable[tuple[str, bytes]]) -> ImportSummary:
        """Same as :meth:`import_files` for in-memory uploads given as ``(filename, data)``."""

        return self._run(list(buffers))

    def _run(self, items: list[tuple[str, Path | bytes]]) -> ImportSummary:
        results: list[ImportRecordResult] = []
        total_records = 0
        for filename, source in items:
            file_results, record_count = self._import_one(filename, source)
            results.extend(file_results)
            total_records += record_count

        success = sum(1 for item in results if item.success)
        summary = ImportSummary(
            total_files=len(items),
            total_records=total_records,
            success_count=success,
            error_count=len(results) - success,
            results=results,
        )
        self.logger.info(summary.message)
        return summary

    def _import_one(self, filename: str, source: Path | bytes) -> tuple[list[ImportRecordResult], int]:
        try:
            parsed = parse_inventory_file(source, self.settings)
            requests = to_upsert_requests(parsed)
            if not requests:
                self.logger.warning("%s: %s", filename, NO_RECORDS_MESSAGE)
                return [ImportRecordResult(filename=filename, success=False, error=NO_RECORDS_MESSAGE)], 0
            id_date = self._resolve_date_report(filename, parsed)
        except (StockFlowError, StoreError, OSError) as exc:
            self.logger.error("%s: failed to process file: %s", filename, exc)
            return [ImportRecordResult(filename=filename, success=False, error=str(exc))], 0

        self.logger.info(
            "%s: detail_date=%s store=%s records=%s",
            filename,
            parsed.detail_date,
            parsed.store_code,
            len(requests),
        )
        return [self._import_request(filename, request, id_date) for request in requests], len(requests)

    def _resolve_date_report(self, filename: str, parsed: ParsedFileResult) -> str:
        if not parsed.detail_date:
            self.logger.warning("%s: no detail date found in the first row", filename)
            return ""
        try:
            return str(self.date_reports.find_or_create(parsed.detail_date)["id"])
        except (StoreError, OSError) as exc:
            self.logger.error("%s: could not record detail date %s: %s", filename, parsed.detail_date, exc)
            return ""

    def _import_request(self, filename: str, request: LotUpsertRequest, id_date: str) -> ImportRecordResult:
        result = ImportRecordResult(
            filename=filename,
            product_code=request.product_code,
            lot_no=request.lot_no,
            success=False,
        )
        if not request.product_code.strip():
            return result.model_copy(update={"error": "Product code is missing or empty"})
        if not request.lot_no.strip():
            return result.model_copy(update={"error": "Lot number is missing or empty"})

        try:
            product = self.products.find_or_create(
                ProductRecord(
                    product_code=request.product_code,
                    store_location=request.store_location,
                    description=request.description,
                    um=request.unit_of_measure,
                    cost=request.cost,
                    item_type=request.item_type,
                    id_date=id_date,
                )
            )
            self.lots.upsert(
                LotRecord(
                    product_id=str(product["id"]),
                    lot_no=request.lot_no,
                    exp=request.expiry,
                    qty=request.total_quantity,
                )
            )
        except (StoreError, OSError) as exc:
            self.logger.error("%s: %s/%s failed: %s", filename, request.product_code, request.lot_no, exc)
            return result.model_copy(update={"error": str(exc)})
        return result.model_copy(update={"success": True})
