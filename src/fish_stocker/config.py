"""Program table and runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from fish_stocker.errors import UnknownProgramError

API_KEY_ENV = "FISH_STOCKER_API_KEY"
SHEETS_URL_ENV = "FISH_STOCKER_SHEETS_URL"
DEFAULT_SHEETS_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class Program(str, Enum):
    """Stocking schedules published by the agency."""

    CFP = "cfp"
    WINTER = "winter"
    SPRING_SUMMER = "springsummer"


@dataclass(frozen=True)
class ProgramConfig:
    """Where a program's schedule lives and how its layout is shaped.

    ``skip_column`` is the 0-based index (among the data cells, after the
    water-name column) of a column deleted from the live sheet that still
    comes back as an empty slot; ``-1`` when there is none.
    """

    spreadsheet_id: str
    sheet_name: str
    schedule_range: str
    date_range: str
    skip_column: int = -1

    def __post_init__(self) -> None:
        if self.skip_column < -1:
            raise ValueError("skip_column must be -1 or a column index")


PROGRAMS: dict[Program, ProgramConfig] = {
    Program.CFP: ProgramConfig(
        spreadsheet_id="1xJYPRrX2Gb7ACr6HxPB7mlsCw9K8NvClLfBIw7qjTcA",
        sheet_name="CFP Stocking Calendar Schedule",
        schedule_range="A11:Z",
        date_range="B8:9",
        skip_column=-1,
    ),
    Program.WINTER: ProgramConfig(
        spreadsheet_id="1PZuTV-zi5vMdxaMSnGx6c-QxeQQm-6DRQJJPKAZDjZM",
        sheet_name="2024-25 Winter",
        schedule_range="A9:AD",
        date_range="B4:5",
        skip_column=5,
    ),
    Program.SPRING_SUMMER: ProgramConfig(
        spreadsheet_id="1S5wsDfGzEInV64UKjUPzexAe2KOO1KocfB4dJH7oVrs",
        sheet_name="2024 Spring/Summer",
        schedule_range="A9:AD",
        date_range="B4:5",
        skip_column=5,
    ),
}

_ALIASES: dict[str, Program] = {
    "spring": Program.SPRING_SUMMER,
    "summer": Program.SPRING_SUMMER,
}


def parse_program(name: str) -> Program:
    """Case-insensitive program lookup; ``spring``/``summer`` share one sheet."""
    key = name.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Program(key)
    except ValueError:
        valid = ", ".join([p.value for p in Program] + sorted(_ALIASES))
        raise UnknownProgramError(f"Unknown program: {name!r}. Use one of: {valid}") from None


def program_config(program: Program | str) -> ProgramConfig:
    if not isinstance(program, Program):
        program = parse_program(program)
    return PROGRAMS[program]


def api_key_from_env() -> str:
    return os.environ.get(API_KEY_ENV, "").strip()


def sheets_url_from_env() -> str:
    return os.environ.get(SHEETS_URL_ENV, "").strip() or DEFAULT_SHEETS_URL
