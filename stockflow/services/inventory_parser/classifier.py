"""Row classification for headerless inventory reports.

Each populated row is read against a small carried context and the row that
follows it. Rules, in priority order:

1. summary/total rows are dropped;
2. an A-only row followed by a full A-F row names a category (item type);
3. a full A-F row starts a product;
4. an A-only row that is *not* followed by a full row is a one-field product;
5. with a product in effect, a row with a quantity in C is a lot of it;
6. anything else is noise and is skipped.

Rules 2 and 4 look identical on the page; only the next row tells them apart.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable, Iterator, Optional, Tuple

from stockflow.config import ParserSettings, default_parser_settings
from stockflow_io.cleaning import parse_decimal, strip_brackets
from stockflow_io.grid_reader import Cell, Row, cell_at, cell_text

from .expiry import decode_expiry
from .models import (
    CategoryMarker,
    LotLine,
    LotObservation,
    ParseContext,
    ProductDraft,
    ProductHeader,
    RowEvent,
    SummaryLine,
    Unclassified,
)

LOGGER = logging.getLogger(__name__)

SHAPE_WIDTH = 6
_SIX_DIGITS = re.compile(r"\d{6}")

Shape = Tuple[str, ...]


def row_shape(row: Optional[Row]) -> Shape:
    """Return the trimmed text of columns A-F (empty strings for blanks)."""

    if row is None:
        return ("",) * SHAPE_WIDTH
    return tuple(cell_text(cell_at(row, idx)) for idx in range(SHAPE_WIDTH))


def is_full_row(shape: Shape) -> bool:
    return all(shape)


def is_first_column_only(shape: Shape) -> bool:
    return bool(shape[0]) and not any(shape[1:])


def is_summary_line(shape: Shape, settings: ParserSettings) -> bool:
    col_a = shape[0].upper()
    col_b = shape[1].upper()
    total = settings.total_marker.upper()
    return settings.grand_total_marker.upper() in col_a or col_a == total or col_b == total


def decode_lot_no(raw: Cell, settings: ParserSettings) -> str:
    text = cell_text(raw)
    if text in settings.unspecified_lot_tokens:
        return settings.unspecified_lot_label
    if _SIX_DIGITS.fullmatch(text):
        return text
    return text or settings.unspecified_lot_label


def _resolve_store(context: ParseContext, row: Row, settings: ParserSettings) -> str:
    if context.store_code:
        return context.store_code
    return strip_brackets(cell_text(cell_at(row, settings.store_column)))


def _product_from_full_row(shape: Shape, row: Row, context: ParseContext) -> ProductDraft:
    return ProductDraft(
        spare_field=shape[0],
        product_code=shape[1],
        description=shape[2],
        unit_of_measure=shape[3],
        cost=parse_decimal(cell_at(row, 5)),
        store_location=context.store_code or "",
        item_type=context.current_item_type or "",
    )


def _product_from_code_only(shape: Shape, context: ParseContext) -> ProductDraft:
    return ProductDraft(
        spare_field=shape[0],
        product_code=shape[0],
        description="",
        unit_of_measure="",
        cost=parse_decimal(None),
        store_location=context.store_code or "",
        item_type=context.current_item_type or "",
    )


def classify_row(
    context: ParseContext,
    row: Row,
    next_row: Optional[Row],
    settings: ParserSettings | None = None,
    *,
    source_row: int = 0,
) -> Tuple[RowEvent, ParseContext]:
    """Classify one row given its successor; return the event and the next context."""

    settings = settings or default_parser_settings()
    shape = row_shape(row)

    if is_summary_line(shape, settings):
        return SummaryLine(source_row), context

    if is_first_column_only(shape):
        if is_full_row(row_shape(next_row)):
            return (
                CategoryMarker(source_row, item_type=shape[0]),
                replace(context, current_item_type=shape[0]),
            )
        product = _product_from_code_only(shape, context)
        return (
            ProductHeader(source_row, product, abbreviated=True),
            replace(context, current_product=product),
        )

    if is_full_row(shape):
        product = _product_from_full_row(shape, row, context)
        return ProductHeader(source_row, product), replace(context, current_product=product)

    product = context.current_product
    if product is not None and shape[2]:
        observation = LotObservation(
            product_code=product.product_code,
            lot_no=decode_lot_no(cell_at(row, 0), settings),
            expiry=decode_expiry(cell_at(row, 1), settings),
            quantity=parse_decimal(cell_at(row, 2)),
            store=_resolve_store(context, row, settings),
            source_row=source_row,
        )
        return LotLine(source_row, product, observation), context

    LOGGER.debug("Skipping unclassified row %s: %s", source_row, shape)
    return Unclassified(source_row), context


def _with_lookahead(rows: Iterable[Row]) -> Iterator[Tuple[Row, Optional[Row]]]:
    iterator = iter(rows)
    current = next(iterator, None)
    while current is not None:
        upcoming = next(iterator, None)
        yield current, upcoming
        current = upcoming


def classify_rows(
    rows: Iterable[Row],
    context: ParseContext | None = None,
    settings: ParserSettings | None = None,
) -> Iterator[RowEvent]:
    """Fold :func:`classify_row` over *rows*, yielding one event per row."""

    settings = settings or default_parser_settings()
    state = context or ParseContext()
    for index, (row, next_row) in enumerate(_with_lookahead(rows), start=1):
        event, state = classify_row(state, row, next_row, settings, source_row=index)
        yield event
