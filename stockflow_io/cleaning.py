"""Cell-level cleaning helpers shared by the inventory and catalog readers."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional, overload

import pandas as pd

_BRACKET_RE = re.compile(r"\[([^\]]+)\]")
_ZERO = Decimal("0")


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


@overload
def parse_decimal(value: object) -> Decimal: ...


@overload
def parse_decimal(value: object, default: Optional[Decimal]) -> Optional[Decimal]: ...


def parse_decimal(value: object, default: Optional[Decimal] = _ZERO) -> Optional[Decimal]:
    """Parse a cost/quantity cell, returning *default* when it is not a finite number.

    Thousands separators are tolerated (``"1,250.50"``); numeric cells are
    converted through ``str`` so ``12.5`` stays ``Decimal("12.5")``.
    """

    if is_missing(value) or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    else:
        text = str(value).strip().replace(",", "").replace(" ", "")
        try:
            parsed = Decimal(text)
        except (InvalidOperation, ValueError):
            return default
    if not parsed.is_finite():
        return default
    return parsed


def bracket_content(text: str) -> Optional[str]:
    """Return the trimmed interior of the first ``[...]`` group, if any."""

    match = _BRACKET_RE.search(text)
    if match is None:
        return None
    inner = match.group(1).strip()
    return inner or None


def strip_brackets(text: str) -> str:
    """Return the bracket interior when present, otherwise the trimmed text."""

    inner = bracket_content(text)
    return inner if inner is not None else text.strip()
