from __future__ import annotations

import pytest

from fish_stocker.cells import cell_text, non_empty_cells, parse_day, parse_month, parse_stock
from fish_stocker.models import StockKind


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("x", StockKind.TROUT),
        ("X", StockKind.TROUT),
        ("t", StockKind.TROUT),
        ("T", StockKind.TROUT),
        ("c", StockKind.CATFISH),
        ("C", StockKind.CATFISH),
        ("", StockKind.NONE),
        ("?", StockKind.UNKNOWN),
        ("xx", StockKind.UNKNOWN),
    ],
)
def test_parse_stock_classifies_tokens(token: str, expected: StockKind) -> None:
    assert parse_stock(token) is expected


def test_none_and_unknown_are_distinct() -> None:
    assert parse_stock("") is not parse_stock("?")


def test_cell_text_trims_text_and_blanks_everything_else() -> None:
    assert cell_text("  Lake  ") == "Lake"
    assert cell_text("   ") == ""
    assert cell_text(None) == ""
    assert cell_text(7) == ""
    assert cell_text(7.5) == ""


def test_non_empty_cells_skips_blanks_and_numbers() -> None:
    assert list(non_empty_cells(["May", "", None, 3, " June "])) == ["May", "June"]


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("January", 1),
        ("december", 12),
        ("MARCH", 3),
        ("December 2024", 12),
        ("january 2025", 1),
        ("Jan", None),
        ("Week 1", None),
        ("", None),
    ],
)
def test_parse_month(token: str, expected: int | None) -> None:
    assert parse_month(token) == expected


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("7", 7),
        ("7-11", 7),
        ("28 - 1", 28),
        ("x", None),
        ("-3", None),
        ("", None),
    ],
)
def test_parse_day_uses_leading_number(token: str, expected: int | None) -> None:
    assert parse_day(token) == expected
