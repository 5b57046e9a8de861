"""Public API for the inventory parser service."""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Sequence

from stockflow.config import ParserSettings, default_parser_settings
from stockflow_io.grid_reader import GridSource, Row, read_grid

from .aggregate import aggregate_lots
from .classifier import classify_rows
from .header import extract_header
from .models import LotLine, LotUpsertRequest, ParseContext, ParsedFileResult

LOGGER = logging.getLogger(__name__)


def parse_rows(rows: Sequence[Row], settings: ParserSettings | None = None) -> ParsedFileResult:
    """Run header extraction, classification and aggregation over an in-memory grid."""

    settings = settings or default_parser_settings()
    header = extract_header(rows, settings)
    context = ParseContext(store_code=header.store_code, detail_date=header.detail_date)

    kinds: Counter[str] = Counter()
    lot_lines: List[LotLine] = []
    for event in classify_rows(rows, context, settings):
        kinds[type(event).__name__] += 1
        if isinstance(event, LotLine):
            lot_lines.append(event)

    records = aggregate_lots(lot_lines)
    LOGGER.info(
        "Parsed %s rows into %s lots (%s)",
        len(rows),
        len(records),
        ", ".join(f"{name}={count}" for name, count in sorted(kinds.items())),
    )
    return ParsedFileResult(
        detail_date=header.detail_date,
        store_code=header.store_code,
        records=records,
        observations=lot_lines,
    )


def parse_inventory_file(
    source: GridSource,
    settings: ParserSettings | None = None,
) -> ParsedFileResult:
    """Parse one inventory report workbook.

    Raises:
        FileFormatError: The buffer is not a workbook or has no worksheets.
    """

    return parse_rows(read_grid(source), settings)


def to_upsert_requests(result: ParsedFileResult) -> List[LotUpsertRequest]:
    """Flatten aggregated lots into one upsert request per lot and store."""

    requests: List[LotUpsertRequest] = []
    for record in result.records:
        product = record.product
        for store, breakdown in record.store_breakdown.items():
            requests.append(
                LotUpsertRequest(
                    product_code=record.product_code,
                    lot_no=record.lot_no,
                    store_location=store or product.store_location,
                    item_type=product.item_type,
                    description=product.description,
                    unit_of_measure=product.unit_of_measure,
                    cost=product.cost,
                    expiry=record.expiry,
                    total_quantity=breakdown.total,
                )
            )
    return requests


__all__ = ["parse_inventory_file", "parse_rows", "to_upsert_requests"]
