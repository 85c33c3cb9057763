from __future__ import annotations

import pytest

from fish_stocker.config import (
    API_KEY_ENV,
    DEFAULT_SHEETS_URL,
    PROGRAMS,
    SHEETS_URL_ENV,
    Program,
    ProgramConfig,
    api_key_from_env,
    parse_program,
    program_config,
    sheets_url_from_env,
)
from fish_stocker.errors import UnknownProgramError


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("cfp", Program.CFP),
        ("CFP", Program.CFP),
        ("Winter", Program.WINTER),
        ("springsummer", Program.SPRING_SUMMER),
        ("spring", Program.SPRING_SUMMER),
        (" Summer ", Program.SPRING_SUMMER),
    ],
)
def test_parse_program(name: str, expected: Program) -> None:
    assert parse_program(name) is expected


def test_parse_program_rejects_unknown_names() -> None:
    with pytest.raises(UnknownProgramError, match="Unknown program"):
        parse_program("autumn")


def test_every_program_is_configured() -> None:
    assert set(PROGRAMS) == set(Program)
    assert PROGRAMS[Program.CFP].skip_column == -1
    assert PROGRAMS[Program.WINTER].skip_column == 5
    assert program_config("summer") is PROGRAMS[Program.SPRING_SUMMER]


def test_program_config_rejects_bad_skip_column() -> None:
    with pytest.raises(ValueError, match="skip_column"):
        ProgramConfig("id", "Sheet", "A1:B", "B1:2", skip_column=-2)


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.delenv(SHEETS_URL_ENV, raising=False)
    assert api_key_from_env() == ""
    assert sheets_url_from_env() == DEFAULT_SHEETS_URL

    monkeypatch.setenv(API_KEY_ENV, " secret ")
    monkeypatch.setenv(SHEETS_URL_ENV, "http://localhost:9000/sheets")
    assert api_key_from_env() == "secret"
    assert sheets_url_from_env() == "http://localhost:9000/sheets"
