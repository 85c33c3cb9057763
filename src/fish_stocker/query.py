"""Next/last stocking lookups and cross-water rankings."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from datetime import datetime

from fish_stocker import STOCK_TZ
from fish_stocker.models import Calendar, CalendarSet, DateEntry, RankedEntry, StockKind


def _aware(now: datetime) -> datetime:
    # naive datetimes are taken as stocking-zone wall time
    if now.tzinfo is None:
        return now.replace(tzinfo=STOCK_TZ)
    return now


def next_stocking(calendar: Calendar, now: datetime) -> DateEntry | None:
    """First stocked entry whose date (at midnight) is strictly after *now*."""
    now = _aware(now)
    for entry in calendar.entries:
        if entry.stock is StockKind.NONE:
            continue
        if entry.at_midnight() > now:
            return entry
    return None


def last_stocking(calendar: Calendar, now: datetime) -> DateEntry | None:
    """Most recent stocked entry whose date (at midnight) is strictly before *now*."""
    now = _aware(now)
    for entry in reversed(calendar.entries):
        if entry.stock is StockKind.NONE:
            continue
        if entry.at_midnight() < now:
            return entry
    return None


def sort_calendars(
    calendars: CalendarSet,
    key: Callable[[Calendar], Any],
    *,
    reverse: bool = False,
) -> list[Calendar]:
    """Order calendars by *key*; equal keys fall back to water name, A to Z."""
    by_name = sorted(calendars.calendars.values(), key=lambda c: c.water_name)
    # stable sort keeps the name order among equal keys, reversed or not
    return sorted(by_name, key=key, reverse=reverse)


def _rank(
    calendars: CalendarSet,
    lookup: Callable[[Calendar, datetime], DateEntry | None],
    now: datetime,
    *,
    newest_first: bool,
) -> list[RankedEntry]:
    ranked: list[RankedEntry] = []
    for water_name, cal in calendars.calendars.items():
        entry = lookup(cal, now)
        if entry is not None:
            ranked.append(RankedEntry(water_name=water_name, entry=entry))

    sign = -1 if newest_first else 1
    ranked.sort(key=lambda r: (sign * r.entry.as_date().toordinal(), r.water_name))
    return ranked


def rank_next(calendars: CalendarSet, now: datetime) -> list[RankedEntry]:
    """Each water's upcoming stocking, soonest first, ties by name."""
    return _rank(calendars, next_stocking, now, newest_first=False)


def rank_last(calendars: CalendarSet, now: datetime) -> list[RankedEntry]:
    """Each water's most recent stocking, newest first, ties by name."""
    return _rank(calendars, last_stocking, now, newest_first=True)


def describe(
    calendar: Calendar,
    now: datetime,
    *,
    show_all: bool = False,
    show_stocked: bool = False,
    show_next: bool = False,
    show_last: bool = False,
) -> str:
    """Render a calendar for the terminal.

    With no flag set the full calendar is shown.
    """
    if not (show_all or show_stocked or show_next or show_last):
        return calendar.format()

    lines: list[str] = []
    if show_all:
        lines.append(calendar.format())
    elif show_stocked:
        lines.append(calendar.format(hide_empty=True))
    if show_last:
        entry = last_stocking(calendar, now)
        lines.append(f"Last: {entry if entry is not None else 'No Data'}")
    if show_next:
        entry = next_stocking(calendar, now)
        lines.append(f"Next: {entry if entry is not None else 'No Data'}")
    return "\n".join(line for line in lines if line)
