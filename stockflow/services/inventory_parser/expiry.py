"""Expiry-date decoding for lot rows.

The report writes expiry dates in several incompatible ways. Each encoding is a
small strategy that either claims the value (returning an ``ExpiryDecision``,
possibly with ``expiry=None``) or passes (returning ``None``). Strategies are
tried in order and the first claim wins; none of them raise.

1. ``4292552277`` (configurable) means "no expiry".
2. Six digits are ``DDMMYY`` with a 2000-based year.
3. Typed date cells, or text ``pandas`` can read as a date.
4. Thai dates (``2 มกราคม 2568``, ``15/06/2567``) with Buddhist-era years.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Tuple

import pandas as pd

from stockflow.config import ParserSettings, default_parser_settings
from stockflow_io.grid_reader import Cell, cell_text

_SIX_DIGITS = re.compile(r"\d{6}")
_DIGITS = re.compile(r"\d+")
_THAI_LONG = re.compile(r"(\d{1,2})\s*([\u0e00-\u0e7f.]+)\s*(\d{4})")
_SLASHED = re.compile(r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})")
_LATIN_MONTH = re.compile(r"[A-Za-z]{3,}")

BUDDHIST_ERA_OFFSET = 543
_BUDDHIST_ERA_FLOOR = 2400
_GREGORIAN_FLOOR = 1900

THAI_MONTHS = {
    "มกราคม": 1, "ม.ค.": 1,
    "กุมภาพันธ์": 2, "ก.พ.": 2,
    "มีนาคม": 3, "มี.ค.": 3,
    "เมษายน": 4, "เม.ย.": 4,
    "พฤษภาคม": 5, "พ.ค.": 5,
    "มิถุนายน": 6, "มิ.ย.": 6,
    "กรกฎาคม": 7, "ก.ค.": 7,
    "สิงหาคม": 8, "ส.ค.": 8,
    "กันยายน": 9, "ก.ย.": 9,
    "ตุลาคม": 10, "ต.ค.": 10,
    "พฤศจิกายน": 11, "พ.ย.": 11,
    "ธันวาคม": 12, "ธ.ค.": 12,
}


@dataclass(frozen=True, slots=True)
class ExpiryDecision:
    expiry: Optional[date]
    strategy: str


ExpiryStrategy = Callable[[Cell, str, ParserSettings], Optional[ExpiryDecision]]


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _gregorian_year(year: int) -> int:
    return year - BUDDHIST_ERA_OFFSET if year > _BUDDHIST_ERA_FLOOR else year


def _names_full_date(text: str) -> bool:
    """True when *text* carries a day, a month and a year, not a keyword or a partial date."""

    runs = _DIGITS.findall(text)
    if any(len(run) == 3 or len(run) > 4 for run in runs):
        return False
    years = sum(1 for run in runs if len(run) == 4)
    short = len(runs) - years
    if years == 1:
        return short >= 2 or (short == 1 and _LATIN_MONTH.search(text) is not None)
    return years == 0 and short == 3


def decode_sentinel(raw: Cell, text: str, settings: ParserSettings) -> Optional[ExpiryDecision]:
    if text in settings.no_expiry_sentinels:
        return ExpiryDecision(None, "sentinel")
    return None


def decode_ddmmyy(raw: Cell, text: str, settings: ParserSettings) -> Optional[ExpiryDecision]:
    if not _SIX_DIGITS.fullmatch(text):
        return None
    day, month, year = int(text[0:2]), int(text[2:4]), int(text[4:6])
    # Impossible components (e.g. "320624") are claimed as "unknown" rather than re-parsed.
    return ExpiryDecision(_safe_date(settings.ddmmyy_century + year, month, day), "ddmmyy")


def decode_generic(raw: Cell, text: str, settings: ParserSettings) -> Optional[ExpiryDecision]:
    if isinstance(raw, datetime):
        return ExpiryDecision(raw.date(), "typed")
    if isinstance(raw, date):
        return ExpiryDecision(raw, "typed")
    if not _names_full_date(text):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce", dayfirst=True)
        except (ValueError, TypeError, OverflowError):
            return None
    # Buddhist-era years are left for decode_thai
    if pd.isna(parsed) or not _GREGORIAN_FLOOR <= parsed.year <= _BUDDHIST_ERA_FLOOR:
        return None
    return ExpiryDecision(parsed.date(), "generic")


def decode_thai(raw: Cell, text: str, settings: ParserSettings) -> Optional[ExpiryDecision]:
    long_form = _THAI_LONG.fullmatch(text)
    if long_form:
        month = THAI_MONTHS.get(long_form.group(2))
        if month is None:
            return None
        day, year = int(long_form.group(1)), int(long_form.group(3))
        return ExpiryDecision(_safe_date(_gregorian_year(year), month, day), "thai")
    slashed = _SLASHED.fullmatch(text)
    if slashed and int(slashed.group(3)) > _BUDDHIST_ERA_FLOOR:
        day, month, year = (int(part) for part in slashed.groups())
        return ExpiryDecision(_safe_date(_gregorian_year(year), month, day), "thai")
    return None


STRATEGIES: Tuple[ExpiryStrategy, ...] = (
    decode_sentinel,
    decode_ddmmyy,
    decode_generic,
    decode_thai,
)


def resolve_expiry(
    raw: Cell,
    settings: ParserSettings | None = None,
    strategies: Tuple[ExpiryStrategy, ...] = STRATEGIES,
) -> Optional[ExpiryDecision]:
    """Return the first strategy's claim on *raw*, or ``None`` when nothing applies."""

    settings = settings or default_parser_settings()
    text = cell_text(raw)
    if raw is None or not text:
        return None
    for strategy in strategies:
        decision = strategy(raw, text, settings)
        if decision is not None:
            return decision
    return None


def decode_expiry(raw: Cell, settings: ParserSettings | None = None) -> Optional[date]:
    """Decode a lot's expiry cell; unknown or "no expiry" values become ``None``."""

    decision = resolve_expiry(raw, settings)
    return decision.expiry if decision else None
