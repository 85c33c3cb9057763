"""Cell reader — narrow raw grid values to text tokens and classify them."""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

from fish_stocker.models import StockKind

# What a grid source may hand us for a single cell.
Cell = str | int | float | None

_MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

# "January", "january 2025", "DECEMBER 2024"
_MONTH_RE = re.compile(r"^([A-Za-z]+)(?:\s+\d{4})?$")
_DIGITS_RE = re.compile(r"^[0-9]+$")

_STOCK_TOKENS: dict[str, StockKind] = {
    "x": StockKind.TROUT,
    "t": StockKind.TROUT,
    "c": StockKind.CATFISH,
    "": StockKind.NONE,
}


def cell_text(value: object) -> str:
    """Return the trimmed text of *value*, or ``""`` for anything non-textual."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def non_empty_cells(cells: Sequence[Cell]) -> Iterator[str]:
    """Yield trimmed text of the textual, non-blank cells in *cells*, in order."""
    for cell in cells:
        text = cell_text(cell)
        if text:
            yield text


def parse_month(token: str) -> int | None:
    """Return the month number for a month-name token, or ``None``."""
    match = _MONTH_RE.match(token.strip())
    if match is None:
        return None
    return _MONTHS.get(match.group(1).lower())


def parse_day(token: str) -> int | None:
    """Return the leading day number of a token such as ``"7"`` or ``"7-11"``."""
    head = token.split("-", 1)[0].strip()
    if not _DIGITS_RE.match(head):
        return None
    return int(head)


def parse_stock(token: str) -> StockKind:
    return _STOCK_TOKENS.get(token.strip().lower(), StockKind.UNKNOWN)
