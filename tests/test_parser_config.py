from __future__ import annotations

from pathlib import Path

import pytest

from stockflow.config import (
    NO_EXPIRY_SENTINEL,
    UNSPECIFIED_LOT,
    ParserSettings,
    default_parser_settings,
    load_parser_settings,
)
from stockflow.core.errors import ConfigError


def test_bundled_settings_match_model_defaults() -> None:
    settings = default_parser_settings()

    assert settings == ParserSettings()
    assert settings.store_column == 6
    assert NO_EXPIRY_SENTINEL in settings.no_expiry_sentinels
    assert settings.unspecified_lot_label == UNSPECIFIED_LOT


def test_partial_yaml_overrides(tmp_path: Path) -> None:
    path = tmp_path / "parser.yaml"
    path.write_text(
        "parser:\n"
        "  store_column: 7\n"
        "  no_expiry_sentinels: ['4292552277', '999999']\n",
        encoding="utf-8",
    )

    settings = load_parser_settings(path)

    assert settings.store_column == 7
    assert settings.no_expiry_sentinels == ["4292552277", "999999"]
    assert settings.grand_total_marker == "GRAND TOTAL"


@pytest.mark.parametrize(
    "content",
    [
        "parser: [unclosed",
        "- just\n- a list\n",
        "parser:\n  store_column: -1\n",
        "parser:\n  no_expiry_sentinel: ['999999']\n",
    ],
)
def test_invalid_settings_raise_config_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "parser.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_parser_settings(path)


def test_missing_settings_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_parser_settings(tmp_path / "absent.yaml")
