from __future__ import annotations

import logging

import pytest

from stockflow.core.logger import get_child, get_logger, parse_level, set_level
from stockflow_io.utils.log import get_logger as io_logger


def test_parse_level() -> None:
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" Warning ") == logging.WARNING
    with pytest.raises(ValueError, match="Unknown log level"):
        parse_level("chatty")


def test_children_share_the_application_tree() -> None:
    root = get_logger()

    assert root.name == "stockflow"
    assert root.propagate is False
    assert get_child("persist.products").name == "stockflow.persist.products"
    assert io_logger("grid_reader").name == "stockflow.io.grid_reader"


def test_set_level_applies_to_tree() -> None:
    root = get_logger()
    previous = root.level
    try:
        assert set_level("ERROR") == logging.ERROR
        assert get_child("io.grid_reader").getEffectiveLevel() == logging.ERROR
    finally:
        root.setLevel(previous)
