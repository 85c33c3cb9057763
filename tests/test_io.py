from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import requests

from fish_stocker.config import PROGRAMS, Program
from fish_stocker.errors import GridFetchError
from fish_stocker.io import (
    A1Range,
    SheetsApiSource,
    WorkbookGridSource,
    parse_a1_range,
    quote_sheet_range,
    trim_grid,
    write_json,
)
from fish_stocker.models import StockKind

# ── A1 ranges ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("A11:Z", A1Range(10, 0, None, 25)),
        ("B8:9", A1Range(7, 1, 8, None)),
        ("A9:AD", A1Range(8, 0, None, 29)),
        ("b4:c5", A1Range(3, 1, 4, 2)),
        ("C3", A1Range(2, 2, 2, 2)),
    ],
)
def test_parse_a1_range(text: str, expected: A1Range) -> None:
    assert parse_a1_range(text) == expected


@pytest.mark.parametrize("text", ["", "A", "11:Z", "A1:", "B8:A9", "A9:B2", "A1!B2"])
def test_parse_a1_range_rejects_malformed(text: str) -> None:
    with pytest.raises(ValueError):
        parse_a1_range(text)


def test_a1_range_slice_handles_open_ends_and_short_rows() -> None:
    grid: list[list[Any]] = [
        ["a1", "b1", "c1"],
        ["a2", "b2"],
        ["a3", "b3", "c3", "d3"],
    ]

    assert parse_a1_range("B2:3").slice(grid) == [["b2"], ["b3", "c3", "d3"]]
    assert parse_a1_range("A1:B").slice(grid) == [["a1", "b1"], ["a2", "b2"], ["a3", "b3"]]


def test_trim_grid_drops_trailing_empties() -> None:
    grid: list[list[Any]] = [["x", None, ""], [None, "y", None], [None, ""], []]

    assert trim_grid(grid) == [["x"], [None, "y"]]


def test_quote_sheet_range_escapes_quotes() -> None:
    assert quote_sheet_range("2024 Spring/Summer", "B4:5") == "'2024 Spring/Summer'!B4:5"
    assert quote_sheet_range("Bob's", "A1") == "'Bob''s'!A1"


# ── Sheets API source ───────────────────────────────────────────


class _FakeResponse:
    def __init__(self, status: int, payload: Any) -> None:
        self.status_code = status
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_sheets_api_source_requests_quoted_range_with_key() -> None:
    session = _FakeSession(_FakeResponse(200, {"values": [["May", "", "June"], ["1", "8"]]}))
    source = SheetsApiSource("KEY", session, base_url="https://sheets.test/v4/spreadsheets/")  # type: ignore[arg-type]

    values = source.fetch("abc123", "2024-25 Winter", "B4:5")

    assert values == [["May", "", "June"], ["1", "8"]]
    call = session.calls[0]
    assert call["url"] == (
        "https://sheets.test/v4/spreadsheets/abc123/values/%272024-25%20Winter%27%21B4%3A5"
    )
    assert call["params"] == {"key": "KEY"}
    assert call["timeout"] == 30.0


def test_sheets_api_source_missing_values_is_empty_grid() -> None:
    session = _FakeSession(_FakeResponse(200, {"range": "Sheet!A1:B2"}))
    source = SheetsApiSource("KEY", session)  # type: ignore[arg-type]

    assert source.fetch("id", "Sheet", "A1:B2") == []


def test_sheets_api_source_http_error_becomes_grid_fetch_error() -> None:
    source = SheetsApiSource("KEY", _FakeSession(_FakeResponse(403, {})))  # type: ignore[arg-type]

    with pytest.raises(GridFetchError, match="HTTP 403"):
        source.fetch("id", "Sheet", "A1:B2")


def test_sheets_api_source_connection_error_becomes_grid_fetch_error() -> None:
    session = _FakeSession(requests.ConnectionError("no route"))
    source = SheetsApiSource("KEY", session)  # type: ignore[arg-type]

    with pytest.raises(GridFetchError, match="no route") as excinfo:
        source.fetch("id", "Sheet", "A1:B2")
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_sheets_api_source_bad_json_becomes_grid_fetch_error() -> None:
    session = _FakeSession(_FakeResponse(200, ValueError("not json")))
    source = SheetsApiSource("KEY", session)  # type: ignore[arg-type]

    with pytest.raises(GridFetchError, match="not json"):
        source.fetch("id", "Sheet", "A1:B2")


def test_sheets_api_source_requires_key() -> None:
    with pytest.raises(ValueError, match="API key"):
        SheetsApiSource("")


# ── Workbook source ─────────────────────────────────────────────


def test_workbook_source_slices_and_trims_like_the_api(cfp_workbook: Path) -> None:
    config = PROGRAMS[Program.CFP]
    source = WorkbookGridSource(cfp_workbook)

    header = source.fetch(config.spreadsheet_id, config.sheet_name, config.date_range)
    rows = source.fetch(config.spreadsheet_id, config.sheet_name, config.schedule_range)

    assert header == [["December 2024", None, None, "January"], ["16", "23", "30", "6", "13"]]
    assert rows[0] == ["Green Valley Lake", "x", None, "c", None, "t"]
    assert rows[1] == ["Kiwanis Lake", None, "X"]
    assert rows[4] == [None, "x", "x"]
    assert len(rows) == 5


def test_workbook_source_renders_numbers_as_text(tmp_path: Path) -> None:
    from openpyxl import Workbook

    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = "Only"
    ws.append([16, 23.0, 7.5, date(2024, 5, 1)])
    path = tmp_path / "numbers.xlsx"
    wb.save(path)

    rows = WorkbookGridSource(path).fetch("ignored", "Some Other Name", "A1:D1")

    assert rows[0][:3] == ["16", "23", "7.5"]
    assert rows[0][3].startswith("2024-05-01")


def test_workbook_source_unknown_sheet_in_multi_sheet_book(tmp_path: Path) -> None:
    from openpyxl import Workbook

    wb = Workbook()
    wb.create_sheet("Second")
    path = tmp_path / "two.xlsx"
    wb.save(path)

    with pytest.raises(GridFetchError, match="not found"):
        WorkbookGridSource(path).fetch("id", "Missing", "A1:B2")


def test_workbook_source_rejects_missing_and_unsupported_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        WorkbookGridSource(tmp_path / "nope.xlsx")

    csv_path = tmp_path / "data.csv"
    csv_path.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported file type"):
        WorkbookGridSource(csv_path)


# ── write_json ──────────────────────────────────────────────────


def test_write_json_is_sorted_and_handles_enums_and_dates(tmp_path: Path) -> None:
    out = write_json(
        tmp_path / "nested" / "out.json",
        {"b": StockKind.TROUT, "a": date(2024, 5, 1), "p": Path("x/y")},
    )

    text = out.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert list(json.loads(text)) == ["a", "b", "p"]
    assert json.loads(text) == {"a": "2024-05-01", "b": "Trout", "p": "x/y"}
    assert not (tmp_path / "nested" / "out.json.tmp").exists()


def test_write_json_rejects_unknown_objects(tmp_path: Path) -> None:
    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "bad.json", {"x": object()})
