"""Shared fixtures: a small CFP-shaped workbook."""

from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook

from fish_stocker.config import PROGRAMS, Program

# Row 8 holds months, row 9 holds days, schedule starts on row 11 (B8:9 / A11:Z).
CFP_MONTHS = {2: "December 2024", 5: "January"}
CFP_DAYS = ["16", "23", "30", "6", "13"]
CFP_ROWS: list[list[str | None]] = [
    ["Green Valley Lake", "x", None, "c", None, "t"],
    ["Kiwanis Lake", None, "X"],
    ["Bad Row", "x", "x", "x", "x", "x", "x", "x"],
    ["Mystery Pond", "?"],
    [None, "x", "x"],
]


def build_cfp_workbook(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = PROGRAMS[Program.CFP].sheet_name
    ws.cell(row=1, column=1, value="Community Fishing Program")
    for col, label in CFP_MONTHS.items():
        ws.cell(row=8, column=col, value=label)
    for offset, label in enumerate(CFP_DAYS):
        ws.cell(row=9, column=2 + offset, value=label)
    for r_offset, row in enumerate(CFP_ROWS):
        for c_offset, value in enumerate(row):
            if value is not None:
                ws.cell(row=11 + r_offset, column=1 + c_offset, value=value)
    wb.save(path)
    return path


@pytest.fixture
def cfp_workbook(tmp_path: Path) -> Path:
    return build_cfp_workbook(tmp_path / "cfp.xlsx")
