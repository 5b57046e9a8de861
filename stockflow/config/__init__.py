"""Configuration helpers for StockFlow runtime files.

Provides the loader for the inventory parser settings YAML. Every key is
optional: the defaults below describe the layout produced by the hospital
inventory system's "non-moving stock" report, so a missing file or a partial
file still yields a usable configuration.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stockflow.core.errors import ConfigError


CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_PARSER_SETTINGS_PATH = CONFIG_DIR / "parser.yaml"

UNSPECIFIED_LOT = "ไม่ระบุ lot"
NO_EXPIRY_SENTINEL = "4292552277"


class ParserSettings(BaseModel):
    """Knobs for the inventory-file extraction engine."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    period_label_patterns: List[str] = Field(
        default_factory=lambda: [
            r"ประจำวันงวดวันที่\s*(.+)",
            r"ประจำวันงวด\s*วันที่\s*(.+)",
            r"ประจำงวดวันที่\s*(.+)",
            r"งวดวันที่\s*(.+)",
        ]
    )
    store_column: int = Field(default=6, ge=0)
    grand_total_marker: str = "GRAND TOTAL"
    total_marker: str = "TOTAL"
    no_expiry_sentinels: List[str] = Field(default_factory=lambda: [NO_EXPIRY_SENTINEL])
    unspecified_lot_tokens: List[str] = Field(default_factory=lambda: ["."])
    unspecified_lot_label: str = UNSPECIFIED_LOT
    ddmmyy_century: int = 2000


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Parser settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Parser settings must be a mapping")
    return data


def load_parser_settings(path: str | Path | None = None) -> ParserSettings:
    """Load parser settings from YAML, falling back to the bundled file."""

    settings_path = Path(path) if path else DEFAULT_PARSER_SETTINGS_PATH
    raw = _load_yaml(settings_path)
    try:
        return ParserSettings.model_validate(raw.get("parser", raw))
    except ValidationError as exc:
        raise ConfigError(f"Invalid parser settings in {settings_path}: {exc}") from exc


@lru_cache(maxsize=1)
def default_parser_settings() -> ParserSettings:
    """Return the bundled settings, loaded once per process."""

    return load_parser_settings()


__all__ = [
    "DEFAULT_PARSER_SETTINGS_PATH",
    "NO_EXPIRY_SENTINEL",
    "ParserSettings",
    "UNSPECIFIED_LOT",
    "default_parser_settings",
    "load_parser_settings",
]
