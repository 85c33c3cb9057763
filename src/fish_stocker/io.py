"""I/O helpers — grid sources (Sheets API, local workbook) and JSON artifacts."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests
from openpyxl import load_workbook
from openpyxl.utils import column_index_from_string

from fish_stocker.cells import Cell
from fish_stocker.config import DEFAULT_SHEETS_URL
from fish_stocker.errors import GridFetchError

logger = logging.getLogger(__name__)

# ── A1 ranges ───────────────────────────────────────────────────

_A1_RE = re.compile(
    r"^(?P<c0>[A-Za-z]+)(?P<r0>[0-9]+)"
    r"(?::(?P<c1>[A-Za-z]+)?(?P<r1>[0-9]+)?)?$"
)


@dataclass(frozen=True)
class A1Range:
    """0-based, inclusive cell range; ``None`` bounds run to the sheet edge."""

    first_row: int
    first_col: int
    last_row: int | None = None
    last_col: int | None = None

    def slice(self, grid: list[list[Cell]]) -> list[list[Cell]]:
        row_stop = None if self.last_row is None else self.last_row + 1
        col_stop = None if self.last_col is None else self.last_col + 1
        return [list(row[self.first_col:col_stop]) for row in grid[self.first_row:row_stop]]


def parse_a1_range(text: str) -> A1Range:
    """Parse ``"B8:9"``, ``"A11:Z"``, ``"A1:C3"`` or ``"B2"``.

    Raises
    ------
    ValueError
        If *text* is not an A1 range with an explicit start cell.
    """
    match = _A1_RE.match(text.strip())
    if match is None:
        raise ValueError(f"Invalid A1 range: {text!r}")

    first_row = int(match["r0"]) - 1
    first_col = column_index_from_string(match["c0"].upper()) - 1
    if ":" not in text:
        return A1Range(first_row, first_col, first_row, first_col)

    if match["c1"] is None and match["r1"] is None:
        raise ValueError(f"Invalid A1 range: {text!r}")
    last_row = None if match["r1"] is None else int(match["r1"]) - 1
    last_col = None if match["c1"] is None else column_index_from_string(match["c1"].upper()) - 1
    if (last_row is not None and last_row < first_row) or (
        last_col is not None and last_col < first_col
    ):
        raise ValueError(f"A1 range ends before it starts: {text!r}")
    return A1Range(first_row, first_col, last_row, last_col)


def quote_sheet_range(sheet_name: str, a1_range: str) -> str:
    """``'Sheet Name'!A1:B2`` with embedded quotes doubled."""
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{a1_range}"


def _is_empty(cell: Cell) -> bool:
    return cell is None or (isinstance(cell, str) and cell == "")


def trim_grid(grid: list[list[Cell]]) -> list[list[Cell]]:
    """Drop trailing empty cells from each row and trailing empty rows."""
    trimmed: list[list[Cell]] = []
    for row in grid:
        end = len(row)
        while end and _is_empty(row[end - 1]):
            end -= 1
        trimmed.append(list(row[:end]))
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


# ── Sources ─────────────────────────────────────────────────────


class SheetsApiSource:
    """Read cell values through the Google Sheets v4 REST API with an API key."""

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        *,
        base_url: str = DEFAULT_SHEETS_URL,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ValueError("A Sheets API key is required")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch(self, spreadsheet_id: str, sheet_name: str, a1_range: str) -> list[list[Cell]]:
        read_range = quote_sheet_range(sheet_name, a1_range)
        url = f"{self.base_url}/{quote(spreadsheet_id, safe='')}/values/{quote(read_range, safe='')}"
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, params={"key": self.api_key}, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.HTTPError as exc:
            raise GridFetchError(
                f"error getting data from sheet {read_range!r}: HTTP {exc.response.status_code}"
            ) from exc
        except (requests.RequestException, ValueError) as exc:
            raise GridFetchError(f"error getting data from sheet {read_range!r}: {exc}") from exc

        values = payload.get("values", [])
        if not isinstance(values, list):
            raise GridFetchError(f"unexpected 'values' payload for {read_range!r}")
        return [list(row) for row in values]


def _as_text(value: Any) -> Cell:
    # mirror the API's formatted values: numbers arrive as text
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class WorkbookGridSource:
    """Read cells from a local ``.xlsx`` export of a schedule.

    The spreadsheet id is ignored. Ranges are sliced out of the named sheet
    (or the only sheet in a single-sheet workbook) and trimmed the way the
    Sheets API trims them.
    """

    def __init__(self, path: Path) -> None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Workbook not found: {path}")
        if path.suffix.lower() not in (".xlsx", ".xlsm", ".xltx", ".xltm"):
            raise ValueError(f"Unsupported file type: {path.suffix!r}. Use .xlsx")
        self.path = path
        self._sheets: dict[str, list[list[Cell]]] = {}

    def _load_sheet(self, sheet_name: str) -> list[list[Cell]]:
        if sheet_name in self._sheets:
            return self._sheets[sheet_name]

        wb = load_workbook(self.path, data_only=True)
        try:
            if sheet_name in wb.sheetnames:
                ws = wb[sheet_name]
            elif len(wb.sheetnames) == 1:
                ws = wb.worksheets[0]
                logger.info("Sheet %r not found; using only sheet %r", sheet_name, ws.title)
            else:
                raise GridFetchError(
                    f"Sheet {sheet_name!r} not found in {self.path.name} "
                    f"(sheets: {', '.join(wb.sheetnames)})"
                )
            grid = [
                [_as_text(v) for v in row]
                for row in ws.iter_rows(min_row=1, min_col=1, values_only=True)
            ]
        finally:
            wb.close()

        self._sheets[sheet_name] = grid
        return grid

    def fetch(self, spreadsheet_id: str, sheet_name: str, a1_range: str) -> list[list[Cell]]:
        grid = self._load_sheet(sheet_name)
        return trim_grid(parse_a1_range(a1_range).slice(grid))


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
