"""Inventory report parser service package."""

from .aggregate import aggregate_lots
from .api import parse_inventory_file, parse_rows, to_upsert_requests
from .classifier import classify_row, classify_rows
from .expiry import decode_expiry
from .header import HeaderInfo, extract_header
from .models import (
    AggregatedLot,
    LotLine,
    LotObservation,
    LotUpsertRequest,
    ParseContext,
    ParsedFileResult,
    ProductDraft,
)

__all__ = [
    "AggregatedLot",
    "HeaderInfo",
    "LotLine",
    "LotObservation",
    "LotUpsertRequest",
    "ParseContext",
    "ParsedFileResult",
    "ProductDraft",
    "aggregate_lots",
    "classify_row",
    "classify_rows",
    "decode_expiry",
    "extract_header",
    "parse_inventory_file",
    "parse_rows",
    "to_upsert_requests",
]
