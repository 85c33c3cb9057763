"""Extraction pipeline — pure functions from raw grids to calendars."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

import pandas as pd

from fish_stocker import STOCK_TZ
from fish_stocker.axis import build_date_axis
from fish_stocker.cells import Cell, cell_text, parse_stock
from fish_stocker.config import Program, program_config
from fish_stocker.errors import RowLengthError, StructuralError
from fish_stocker.models import (
    Calendar,
    CalendarSet,
    DateEntry,
    ExtractionReport,
    RankedEntry,
    RowError,
    StockKind,
)

logger = logging.getLogger(__name__)


class GridSource(Protocol):
    def fetch(self, spreadsheet_id: str, sheet_name: str, a1_range: str) -> list[list[Cell]]:
        ...


# ── Row normalisation ───────────────────────────────────────────


def normalize_row(
    cells: Sequence[Cell], axis: Sequence[DateEntry], skip_column: int = -1
) -> Calendar:
    """Annotate a copy of *axis* with the stocking values in *cells*.

    *cells* are the data cells of one schedule row (water name excluded).
    When *skip_column* is set, that cell is a dead column and consumes no
    date. Trailing empty cells trimmed by the source are restored first.

    Raises
    ------
    RowLengthError
        If the row still does not line up with the axis after padding.
    StructuralError
        If *skip_column* lies beyond the end of a full-width row.
    """
    skipped = 1 if skip_column >= 0 else 0
    if skip_column > len(axis):
        raise StructuralError(
            f"skip column {skip_column} is outside a row of {len(axis) + skipped} cells"
        )

    row: list[Cell] = list(cells)
    # empty trailing cells are trimmed by the source
    while len(row) - skipped < len(axis):
        row.append("")
    if len(row) - skipped != len(axis):
        raise RowLengthError(
            f"dates and stock cells don't match: {len(axis)} != {len(row) - skipped}"
        )

    entries: list[DateEntry] = []
    offset = 0
    for i, cell in enumerate(row):
        if i == skip_column:
            offset = 1
            continue
        entries.append(axis[i - offset].with_stock(parse_stock(cell_text(cell))))
    return Calendar(entries=tuple(entries))


# ── Calendar assembly ───────────────────────────────────────────


def assemble_calendars(
    rows: Iterable[Sequence[Cell]],
    axis: Sequence[DateEntry],
    waters: Iterable[str] | None = None,
    *,
    skip_column: int = -1,
) -> CalendarSet:
    """Build a calendar per schedule row.

    Every named row is listed in ``water_names``; only rows matching the
    case-insensitive *waters* filter (all rows when empty) get a calendar.
    Rows that do not line up with the axis are dropped and recorded.
    """
    wanted = {w.strip().lower() for w in waters or () if w.strip()}

    water_names: list[str] = []
    calendars: dict[str, Calendar] = {}
    dropped: list[RowError] = []
    for row in rows:
        if not row:
            continue
        water_name = cell_text(row[0])
        if not water_name:
            continue
        water_names.append(water_name)
        if wanted and water_name.lower() not in wanted:
            continue

        try:
            cal = normalize_row(row[1:], axis, skip_column)
        except RowLengthError as exc:
            logger.warning("Dropping row %r: %s", water_name, exc)
            dropped.append(RowError(water_name=water_name, message=str(exc)))
            continue
        if water_name in calendars:
            logger.warning("Duplicate water %r; keeping the later row", water_name)
        calendars[water_name] = Calendar(water_name=water_name, entries=cal.entries)

    return CalendarSet(
        calendars=calendars, water_names=water_names, dropped=dropped, axis=tuple(axis)
    )


def extract(
    program: Program | str,
    waters: Iterable[str] | None = None,
    *,
    source: GridSource,
    base_year: int | None = None,
) -> CalendarSet:
    """Fetch a program's sheet from *source* and return its calendars.

    Transport errors from *source* and structural errors from the header
    propagate; malformed schedule rows end up in ``CalendarSet.dropped``.
    """
    config = program_config(program)
    if base_year is None:
        base_year = datetime.now(STOCK_TZ).year

    header = source.fetch(config.spreadsheet_id, config.sheet_name, config.date_range)
    axis = build_date_axis(header, base_year)
    logger.info("Built date axis of %d dates for %s", len(axis), config.sheet_name)

    rows = source.fetch(config.spreadsheet_id, config.sheet_name, config.schedule_range)
    result = assemble_calendars(rows, axis, waters, skip_column=config.skip_column)
    logger.info(
        "Extracted %d calendar(s) from %d water(s), %d row(s) dropped",
        len(result.calendars), len(result.water_names), len(result.dropped),
    )
    return result


# ── Summary helpers ─────────────────────────────────────────────


def build_extraction_report(program: Program | str, result: CalendarSet) -> ExtractionReport:
    """Summarise data quality for one extraction."""
    program_name = program.value if isinstance(program, Program) else str(program)
    rows_in = len(result.water_names)
    rows_out = len(result.calendars)
    dropped = len(result.dropped)

    report = ExtractionReport(
        program=program_name,
        rows_in=rows_in,
        rows_out=rows_out,
        filtered_rows=rows_in - rows_out - dropped,
        dropped_rows=dropped,
    )

    if result.axis:
        report.axis_length = len(result.axis)
        report.first_date = result.axis[0].as_date().isoformat()
        report.last_date = result.axis[-1].as_date().isoformat()

    report.unknown_tokens = sum(
        1
        for cal in result.calendars.values()
        for entry in cal
        if entry.stock is StockKind.UNKNOWN
    )
    if report.unknown_tokens:
        report.warnings.append(
            f"Found {report.unknown_tokens} unrecognised stocking values; kept as Unknown"
        )

    duplicates = rows_in - len(set(result.water_names))
    if duplicates:
        report.warnings.append(
            f"Found {duplicates} duplicate water names; the last row that parsed wins"
        )

    for err in result.dropped:
        report.warnings.append(f"Dropped row {err.water_name!r}: {err.message}")

    if rows_in and not rows_out:
        report.warnings.append("No calendars were built — check the water filter")
    return report


def calendar_frame(result: CalendarSet) -> pd.DataFrame:
    """Water × date matrix of stocking values (blank where nothing is scheduled)."""
    if not result.calendars:
        return pd.DataFrame()
    names = sorted(result.calendars)
    columns = [e.as_date() for e in result.axis or result.calendars[names[0]].entries]
    data = [
        ["" if e.stock is StockKind.NONE else e.stock.value for e in result.calendars[name]]
        for name in names
    ]
    frame = pd.DataFrame(data, index=pd.Index(names, name="water"), columns=columns)
    return frame.reset_index()


def ranking_frame(ranked: Sequence[RankedEntry]) -> pd.DataFrame:
    """Tabulate a ranking as ``water, date, stock`` rows."""
    if not ranked:
        return pd.DataFrame(columns=["water", "date", "stock"])
    return pd.DataFrame(
        {
            "water": [r.water_name for r in ranked],
            "date": [pd.Timestamp(r.entry.as_date()) for r in ranked],
            "stock": [r.entry.stock.value for r in ranked],
        }
    )
