"""`stockflow_io` top-level package exports the spreadsheet IO helpers."""

# Module responsibilities:
# - Re-export the grid reader and catalog readers so consumers have a stable API surface.

from __future__ import annotations

from .catalog_reader import read_product_lots, read_products, read_table
from .grid_reader import Cell, Row, cell_at, cell_text, read_grid
from .schema import ProductLotRow, ProductRow

__all__ = [
    "Cell",
    "Row",
    "ProductLotRow",
    "ProductRow",
    "cell_at",
    "cell_text",
    "read_grid",
    "read_product_lots",
    "read_products",
    "read_table",
]

__version__ = "0.1.0"
