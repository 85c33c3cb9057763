"""Data models shared across the package."""

from __future__ import annotations

import calendar as _calendar
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from numbers import Integral
from typing import Any

from fish_stocker import STOCK_TZ


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


class StockKind(str, Enum):
    """What (if anything) is stocked on a date.

    ``NONE`` is an unscheduled date; ``UNKNOWN`` is a cell that held a value
    nobody recognised. The two are never interchangeable.
    """

    TROUT = "Trout"
    CATFISH = "Catfish"
    NONE = "None"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DateEntry:
    """One slot of the date axis, optionally annotated with a stocking."""

    year: int
    month: int
    day: int
    stock: StockKind = StockKind.NONE

    def __post_init__(self) -> None:
        for name in ("year", "month", "day"):
            _to_non_negative_int(getattr(self, name), name)
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")
        if not isinstance(self.stock, StockKind):
            raise TypeError("stock must be a StockKind")

    def as_date(self) -> date:
        """The calendar date, with days past the end of the month carried forward.

        The sheet's day labels are not checked against month lengths, so
        ``February 30`` is March 1 or 2 and day 0 is the previous month's last day.
        """
        return date(self.year, self.month, 1) + timedelta(days=self.day - 1)

    def at_midnight(self) -> datetime:
        """Midnight of this date in the stocking time zone."""
        return datetime.combine(self.as_date(), time(), tzinfo=STOCK_TZ)

    def with_stock(self, stock: StockKind) -> DateEntry:
        return replace(self, stock=stock)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.as_date().isoformat(),
            "stock": self.stock.value,
        }

    def __str__(self) -> str:
        return f"{self.year} {_calendar.month_name[self.month]} {self.day}: \"{self.stock.value}\""


@dataclass(frozen=True)
class Calendar:
    """All stocking data for one water, in date-axis order."""

    water_name: str = ""
    entries: tuple[DateEntry, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.entries, tuple):
            object.__setattr__(self, "entries", tuple(self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DateEntry]:
        return iter(self.entries)

    def stocked(self) -> Iterator[DateEntry]:
        """Yield entries that have anything other than ``StockKind.NONE``."""
        return (e for e in self.entries if e.stock is not StockKind.NONE)

    def dates(self) -> tuple[tuple[int, int, int], ...]:
        return tuple((e.year, e.month, e.day) for e in self.entries)

    def format(self, hide_empty: bool = False) -> str:
        entries = self.stocked() if hide_empty else iter(self.entries)
        return "\n".join(str(e) for e in entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "water_name": self.water_name,
            "entries": [e.to_dict() for e in self.entries],
        }


@dataclass(frozen=True)
class RowError:
    """A schedule row that was dropped during assembly."""

    water_name: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"water_name": self.water_name, "message": self.message}


@dataclass(frozen=True)
class RankedEntry:
    water_name: str
    entry: DateEntry


@dataclass(frozen=True)
class CalendarSet:
    """Result of one extraction.

    Contract invariants: every key of ``calendars`` is listed in
    ``water_names`` and every calendar shares the same date axis. When
    ``axis`` is given it is that shared axis, kept even if no row survived.
    """

    calendars: dict[str, Calendar] = field(default_factory=dict)
    water_names: list[str] = field(default_factory=list)
    dropped: list[RowError] = field(default_factory=list)
    axis: tuple[DateEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "water_names", _to_string_list(self.water_names, "water_names"))
        known = set(self.water_names)
        unknown = sorted(name for name in self.calendars if name not in known)
        if unknown:
            raise ValueError(f"calendars contain undiscovered waters: {', '.join(unknown)}")
        if not isinstance(self.axis, tuple):
            object.__setattr__(self, "axis", tuple(self.axis))
        axes = {cal.dates() for cal in self.calendars.values()}
        if self.axis:
            axes.add(tuple((e.year, e.month, e.day) for e in self.axis))
        if len(axes) > 1:
            raise ValueError("calendars must share one date axis")

    def __len__(self) -> int:
        return len(self.calendars)

    def lookup(self, name: str) -> Calendar | None:
        """Case-insensitive calendar lookup by water name."""
        wanted = name.strip().lower()
        for water_name, cal in self.calendars.items():
            if water_name.lower() == wanted:
                return cal
        return None


@dataclass
class ExtractionReport:
    """Data-quality report emitted alongside every extraction.

    Contract invariant: ``dropped_rows == rows_in - rows_out - filtered_rows``.
    """

    program: str = ""
    rows_in: int = 0
    rows_out: int = 0
    filtered_rows: int = 0
    dropped_rows: int = 0
    axis_length: int = 0
    first_date: str = ""
    last_date: str = ""
    unknown_tokens: int = 0
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        for name in (
            "rows_in", "rows_out", "filtered_rows", "dropped_rows",
            "axis_length", "unknown_tokens",
        ):
            setattr(self, name, _to_non_negative_int(getattr(self, name), name))
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.rows_out + self.filtered_rows > self.rows_in:
            raise ValueError("rows_out + filtered_rows must be <= rows_in")
        if self.dropped_rows != self.rows_in - self.rows_out - self.filtered_rows:
            raise ValueError("dropped_rows must equal rows_in - rows_out - filtered_rows")

    def to_dict(self) -> dict[str, Any]:
        return {
            "program": self.program,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "filtered_rows": self.filtered_rows,
            "dropped_rows": self.dropped_rows,
            "axis_length": self.axis_length,
            "first_date": self.first_date,
            "last_date": self.last_date,
            "unknown_tokens": self.unknown_tokens,
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single export run."""

    tool: str = "fish-stocker"
    version: str = ""
    program: str = ""
    source: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    waters: int = 0
    calendars: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.waters = _to_non_negative_int(self.waters, "waters")
        self.calendars = _to_non_negative_int(self.calendars, "calendars")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "program": self.program,
            "source": self.source,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "waters": self.waters,
            "calendars": self.calendars,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
