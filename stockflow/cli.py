"""Typer based command line entry points for StockFlow."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer

from stockflow.config import load_parser_settings
from stockflow.core.errors import ConfigError, FileFormatError
from stockflow.core.logger import set_level
from stockflow.core.pipeline import InventoryImporter
from stockflow.services.inventory_parser import parse_inventory_file
from stockflow_persist import (
    InventoryQuery,
    persist_healthcheck,
    query_expired,
    query_inventory,
    query_non_moving,
)

app = typer.Typer(help="Hospital inventory report tooling.")

_ROOT_OPTION_HELP = "Workspace root (defaults to STOCKFLOW_ROOT or ~/StockFlow)."


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _load_settings(path: Optional[Path]):
    try:
        return load_parser_settings(path)
    except ConfigError as exc:
        typer.secho(f"Unable to load parser settings: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _echo_frame(frame: pd.DataFrame, empty_message: str) -> None:
    if frame.empty:
        typer.echo(empty_message)
        return
    typer.echo(frame.to_string(index=False))


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


@app.command("parse")
def cli_parse(
    file: Path = typer.Argument(..., help="Inventory report workbook (.xlsx)."),
    as_json: bool = typer.Option(False, "--json", help="Print the parsed result as JSON."),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Parser settings YAML."),
) -> None:
    """Parse one report and print its aggregated lots without storing them."""

    settings = _load_settings(settings_path)
    try:
        result = parse_inventory_file(file, settings)
    except (FileFormatError, FileNotFoundError) as exc:
        typer.secho(f"Parse failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    typer.echo(f"Detail date: {result.detail_date or '-'}")
    typer.echo(f"Store: {result.store_code or '-'}")
    rows = [
        {
            "product_code": record.product_code,
            "description": record.description,
            "lot_no": record.lot_no,
            "expiry": record.expiry.isoformat() if record.expiry else "",
            "total_quantity": str(record.total_quantity),
        }
        for record in result.records
    ]
    _echo_frame(pd.DataFrame(rows), "No lots found.")


@app.command("import")
def cli_import(
    files: List[Path] = typer.Argument(..., help="One or more inventory report workbooks."),
    root: Optional[Path] = typer.Option(None, "--root", help=_ROOT_OPTION_HELP),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Parser settings YAML."),
) -> None:
    """Parse reports and upsert their products and lots into the stores."""

    importer = InventoryImporter(root=root, settings=_load_settings(settings_path))
    summary = importer.import_files(files)

    typer.echo(summary.message)
    for item in summary.results:
        if item.success:
            continue
        label = "/".join(part for part in (item.product_code, item.lot_no) if part) or "-"
        typer.secho(f"  {item.filename} [{label}]: {item.error}", fg=typer.colors.YELLOW)
    if summary.error_count and not summary.success_count:
        raise typer.Exit(code=1)


@app.command("inventory")
def cli_inventory(
    store: Optional[str] = typer.Option(None, "--store", help="Only this store location."),
    item_type: Optional[str] = typer.Option(None, "--item-type", help="Only this item type."),
    search: Optional[str] = typer.Option(None, "--search", help="Match product code or description."),
    root: Optional[Path] = typer.Option(None, "--root", help=_ROOT_OPTION_HELP),
) -> None:
    """List stored lots with their products."""

    frame = query_inventory(
        InventoryQuery(store_location=store, item_type=item_type, search=search),
        root=root,
    )
    _echo_frame(frame, "No inventory stored.")


@app.command("expired")
def cli_expired(
    as_of: Optional[datetime] = typer.Option(None, "--as-of", formats=["%Y-%m-%d"], help="Reference date (default today)."),
    root: Optional[Path] = typer.Option(None, "--root", help=_ROOT_OPTION_HELP),
) -> None:
    """List lots that expired before the reference date."""

    _echo_frame(query_expired(_as_date(as_of), root=root), "No expired lots.")


@app.command("non-moving")
def cli_non_moving(
    months: int = typer.Option(6, "--months", min=1, help="Window without updates."),
    as_of: Optional[datetime] = typer.Option(None, "--as-of", formats=["%Y-%m-%d"], help="Reference date (default now)."),
    root: Optional[Path] = typer.Option(None, "--root", help=_ROOT_OPTION_HELP),
) -> None:
    """List product lots that no report has touched within the window."""

    _echo_frame(query_non_moving(as_of, months, root=root), "No non-moving lots.")


@app.command("healthcheck")
def cli_healthcheck(
    root: Optional[Path] = typer.Option(None, "--root", help=_ROOT_OPTION_HELP),
) -> None:
    """Check that the store workbooks are writable and unlocked."""

    report = persist_healthcheck(root)
    typer.echo(json.dumps(asdict(report), ensure_ascii=False, indent=2))
    if not report.is_healthy():
        raise typer.Exit(code=1)


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
