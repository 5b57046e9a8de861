"""File-level metadata read from the first row of an inventory report."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from stockflow.config import ParserSettings
from stockflow_io.cleaning import bracket_content
from stockflow_io.grid_reader import Row, cell_at, cell_text

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HeaderInfo:
    detail_date: Optional[str] = None
    store_code: Optional[str] = None


def extract_detail_date(text: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the text after the first matching "for the period ending" label."""

    for pattern in patterns:
        match = re.search(pattern, text, flags=re.IGNORECASE)
        if match is None:
            continue
        remainder = match.group(1).strip()
        return remainder or None
    return None


def extract_header(rows: Sequence[Row], settings: ParserSettings) -> HeaderInfo:
    """Read the reporting period (column A) and ``[STORE]`` code (column G) of row one."""

    if not rows:
        LOGGER.debug("No rows found; header metadata unavailable")
        return HeaderInfo()

    first = rows[0]
    label = cell_text(cell_at(first, 0))
    detail_date = extract_detail_date(label, settings.period_label_patterns) if label else None
    if label and detail_date is None:
        LOGGER.debug("Could not parse detail date from first row column A: %s", label)

    store_text = cell_text(cell_at(first, settings.store_column))
    store_code = bracket_content(store_text) if store_text else None

    return HeaderInfo(detail_date=detail_date, store_code=store_code)
