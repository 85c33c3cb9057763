"""Excel export — produces Stocking_Calendar.xlsx.

Sheets:
  Notes     extraction counts and warnings
  Calendar  one row per water, one dated column per axis slot
  Next      upcoming stocking per water, soonest first
  Last      latest stocking per water, newest first
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from fish_stocker.models import ExtractionReport, StockKind

REPORT_NAME = "Stocking_Calendar.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")

STOCK_FILLS: dict[str, PatternFill] = {
    StockKind.TROUT.value: PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"),
    StockKind.CATFISH.value: PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid"),
    StockKind.UNKNOWN.value: PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"),
}

DATE_FMT = "yyyy-mm-dd"
DATE_COL_WIDTH = 11
STOCK_ALIGN = Alignment(horizontal="center")

_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _safe_name(name: Any) -> str:
    """Water names are user text; keep Excel from reading them as formulas."""
    text = str(name)
    if text.lstrip()[:1] in _FORMULA_PREFIXES:
        return f"'{text}"
    return text


def _as_date(value: Any) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    return value


def _header(ws: Worksheet, values: list[Any]) -> None:
    for c_idx, value in enumerate(values, 1):
        cell = ws.cell(row=1, column=c_idx, value=value)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _stock_cell(ws: Worksheet, row: int, column: int, stock: str) -> None:
    cell = ws.cell(row=row, column=column, value=stock or None)
    cell.alignment = STOCK_ALIGN
    fill = STOCK_FILLS.get(stock)
    if fill is not None:
        cell.fill = fill


def _placeholder(wb: Workbook, title: str) -> Worksheet:
    ws = wb.create_sheet(title=title)
    ws.cell(row=1, column=1, value="No data").font = VALUE_FONT
    ws.column_dimensions["A"].width = 18
    return ws


def _name_width(names: list[str]) -> int:
    return min(max([len("Water"), *(len(n) for n in names)]) + 4, 40)


# ── Sheets ───────────────────────────────────────────────────────


def _write_calendar(wb: Workbook, calendar_df: pd.DataFrame) -> Worksheet:
    """Water x date grid; header cells are real dates, stock cells are shaded."""
    if calendar_df.empty or "water" not in calendar_df.columns:
        return _placeholder(wb, "Calendar")

    ws = wb.create_sheet(title="Calendar")
    dates = [_as_date(c) for c in calendar_df.columns if c != "water"]
    _header(ws, ["Water", *dates])
    for c_idx in range(2, len(dates) + 2):
        ws.cell(row=1, column=c_idx).number_format = DATE_FMT
        ws.column_dimensions[get_column_letter(c_idx)].width = DATE_COL_WIDTH

    names: list[str] = []
    for r_idx, (_, row) in enumerate(calendar_df.iterrows(), 2):
        name = str(row["water"])
        names.append(name)
        ws.cell(row=r_idx, column=1, value=_safe_name(name)).font = LABEL_FONT
        for c_idx, stock in enumerate(row.drop("water"), 2):
            _stock_cell(ws, r_idx, c_idx, str(stock or ""))

    ws.column_dimensions["A"].width = _name_width(names)
    ws.freeze_panes = "B2"
    ws.auto_filter.ref = ws.dimensions
    return ws


def _write_ranking(wb: Workbook, title: str, ranked_df: pd.DataFrame) -> Worksheet:
    """One ``Water | Date | Stock`` row per water, as an Excel table named *title*."""
    if ranked_df.empty:
        return _placeholder(wb, title)

    ws = wb.create_sheet(title=title)
    _header(ws, ["Water", "Date", "Stock"])
    names: list[str] = []
    for r_idx, rec in enumerate(ranked_df.itertuples(index=False), 2):
        names.append(str(rec.water))
        ws.cell(row=r_idx, column=1, value=_safe_name(rec.water))
        ws.cell(row=r_idx, column=2, value=_as_date(rec.date)).number_format = DATE_FMT
        _stock_cell(ws, r_idx, 3, str(rec.stock))

    ws.column_dimensions["A"].width = _name_width(names)
    ws.column_dimensions["B"].width = DATE_COL_WIDTH + 2
    ws.column_dimensions["C"].width = 12
    ws.freeze_panes = "A2"

    table = Table(displayName=title, ref=f"A1:C{len(ranked_df) + 1}")
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)
    return ws


def _write_notes(wb: Workbook, report: ExtractionReport) -> None:
    ws = wb.create_sheet(title="Notes")

    ws.cell(row=1, column=1, value=f"fish-stocker — {report.program or 'schedule'}").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")

    row = 4
    facts = [
        ("Waters in sheet", report.rows_in),
        ("Calendars built", report.rows_out),
        ("Filtered out", report.filtered_rows),
        ("Dropped rows", report.dropped_rows),
        ("Dates per water", report.axis_length),
        ("First date", report.first_date or "N/A"),
        ("Last date", report.last_date or "N/A"),
        ("Unknown values", report.unknown_tokens),
    ]
    for label, value in facts:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = NOTE_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = NOTE_FILL
        row += 1

    row += 1
    if report.warnings:
        for warn in report.warnings:
            ws.cell(row=row, column=1, value=f"⚠ {warn}").font = WARN_FONT
            row += 1
    else:
        ws.cell(row=row, column=1, value="No warnings").font = VALUE_FONT

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 22


# ── Public API ───────────────────────────────────────────────────


def write_report(
    out_dir: Path,
    calendar_df: pd.DataFrame,
    next_df: pd.DataFrame,
    last_df: pd.DataFrame,
    report: ExtractionReport | None = None,
) -> Path:
    """Write ``Stocking_Calendar.xlsx`` and return the path.

    *calendar_df* is the frame from ``pipeline.calendar_frame``; the two
    ranking frames come from ``pipeline.ranking_frame``.
    """
    if report is None:
        report = ExtractionReport()

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_NAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_notes(wb, report)
    _write_calendar(wb, calendar_df)
    _write_ranking(wb, "Next", next_df)
    _write_ranking(wb, "Last", last_df)

    tmp_path = out_dir / "Stocking_Calendar.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
