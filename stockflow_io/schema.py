"""Shared schemas for header-anchored catalog sheets."""

# Module responsibilities:
# - Provide typed rows for the products.xlsx and product_lots.xlsx layouts.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ProductRow:
    """One line of a ``PRODUCT_CODE | DESCRIPTION | UM | COST`` sheet."""

    product_code: str
    description: str
    um: str
    cost: Decimal


@dataclass(frozen=True)
class ProductLotRow:
    """One line of a ``PRODUCT_CODE | LOT_NO | EXP | STORE | QTY`` sheet."""

    product_code: str
    lot_no: str
    exp: Optional[date]
    store: Optional[str]
    qty: Optional[Decimal]
