"""Date-axis builder — turn the two header rows into an ordered list of dates.

The month row is sparse: a month name appears once above the first of its
day columns. The day row has a label for every column. Month boundaries are
inferred from the day numbers: whenever a day is smaller than the previous
one, the next month from the month row begins. Entering January straight
after December bumps the year. Day numbers are not checked against the
length of their month; see ``DateEntry.as_date``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fish_stocker.cells import Cell, non_empty_cells, parse_day, parse_month
from fish_stocker.errors import HeaderShapeError, MonthOverflowError
from fish_stocker.models import DateEntry

logger = logging.getLogger(__name__)


def parse_months(cells: Sequence[Cell]) -> list[int]:
    """Month numbers from the month row; unparseable labels are dropped."""
    months: list[int] = []
    for token in non_empty_cells(cells):
        month = parse_month(token)
        if month is None:
            logger.debug("Ignoring month label %r", token)
            continue
        months.append(month)
    return months


def _is_new_year(months: list[int], index: int) -> bool:
    return index > 0 and months[index] == 1 and months[index - 1] == 12


def build_date_axis(header: Sequence[Sequence[Cell]], base_year: int) -> list[DateEntry]:
    """Build the date axis from a ``[month_row, day_row]`` header block.

    Every returned entry has ``StockKind.NONE``; stocking values are filled
    in per water by the row normalizer.

    Raises
    ------
    HeaderShapeError
        If *header* does not have exactly two rows.
    MonthOverflowError
        If the day numbers roll over more times than there are months.
    """
    if len(header) != 2:
        raise HeaderShapeError(f"expected 2 header rows but got {len(header)}")

    month_cells, day_cells = header
    months = parse_months(month_cells)

    axis: list[DateEntry] = []
    year = base_year
    month_index = 0
    prev_day = -1
    for token in non_empty_cells(day_cells):
        day = parse_day(token)
        if day is None:
            logger.debug("Ignoring day label %r", token)
            continue

        if day < prev_day:
            month_index += 1
            if month_index >= len(months):
                raise MonthOverflowError(
                    f"day {day} after {prev_day} starts month #{month_index + 1} "
                    f"but the header only names {len(months)} month(s)"
                )
            if _is_new_year(months, month_index):
                year += 1
        prev_day = day

        if month_index >= len(months):
            raise MonthOverflowError("day labels found but no month label could be parsed")

        axis.append(DateEntry(year=year, month=months[month_index], day=day))

    return axis
