"""CLI entry point for fish-stocker."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from fish_stocker import __version__
from fish_stocker.config import (
    API_KEY_ENV,
    Program,
    api_key_from_env,
    parse_program,
    sheets_url_from_env,
)
from fish_stocker.errors import GridFetchError, StockerError
from fish_stocker.io import SheetsApiSource, WorkbookGridSource, write_json
from fish_stocker.models import CalendarSet, ExtractionReport, RankedEntry, RunManifest
from fish_stocker.pipeline import (
    GridSource,
    build_extraction_report,
    calendar_frame,
    extract,
    ranking_frame,
)
from fish_stocker.qc import write_extraction_report
from fish_stocker.query import describe, rank_last, rank_next
from fish_stocker.report import write_report
from fish_stocker.utils import parse_now, sha256_file, utcnow_iso

app = typer.Typer(
    name="fstock",
    help="fish-stocker — Fish-stocking calendars from agency spreadsheets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Shared options ───────────────────────────────────────────────

_PROGRAM_OPT = typer.Option(
    ..., "--program", "-p",
    help="Stocking program: cfp, winter, springsummer (or spring/summer).",
)
_WATER_OPT = typer.Option(
    None, "--water", "-w",
    help="Only build calendars for this water (repeatable, case-insensitive).",
)
_WORKBOOK_OPT = typer.Option(
    None, "--workbook",
    help="Read a local .xlsx export instead of the live Google Sheet.",
    exists=True, dir_okay=False, readable=True,
)
_API_KEY_OPT = typer.Option(
    "", "--api-key", show_default=False,
    help=f"Google Sheets API key (default: ${API_KEY_ENV} env var).",
)
_YEAR_OPT = typer.Option(
    None, "--year",
    help="Year of the first month in the sheet (default: current year).",
)
_NOW_OPT = typer.Option(
    None, "--now",
    help="Reference time for next/last lookups, ISO format (default: now, AZ time).",
)
_QUIET_OPT = typer.Option(
    False, "--quiet", "-q",
    help="Suppress informational output.",
)


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fish-stocker v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _program_or_exit(name: str) -> Program:
    try:
        return parse_program(name)
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)


def _now_or_exit(value: str | None) -> datetime:
    try:
        return parse_now(value)
    except ValueError:
        _err(f"Invalid --now value: {value!r} (expected ISO format, e.g. 2024-05-01T08:00)")
        raise typer.Exit(code=2)


def _open_source(workbook: Path | None, api_key: str) -> GridSource:
    if workbook is not None:
        return WorkbookGridSource(workbook)
    api_key = api_key or api_key_from_env()
    if not api_key:
        raise ValueError(f"Missing API key: pass --api-key or set {API_KEY_ENV}")
    return SheetsApiSource(api_key, base_url=sheets_url_from_env())


def _load(
    program: Program,
    waters: list[str] | None,
    workbook: Path | None,
    api_key: str,
    year: int | None,
    *,
    quiet: bool,
) -> CalendarSet:
    try:
        source = _open_source(workbook, api_key)
        result = extract(program, waters, source=source, base_year=year)
    except (StockerError, FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=1 if isinstance(exc, GridFetchError) else 2)

    if not quiet:
        for dropped in result.dropped:
            console.print(
                f"  [yellow]![/yellow] Dropped row {dropped.water_name!r}: {dropped.message}",
                highlight=False,
            )
    return result


def _print_ranking(title: str, ranked: list[RankedEntry]) -> None:
    if not ranked:
        console.print(f"{title}: no stockings found")
        return
    tbl = RichTable(title=title)
    tbl.add_column("Water", style="bold")
    tbl.add_column("Date")
    tbl.add_column("Stock")
    for item in ranked:
        tbl.add_row(item.water_name, item.entry.as_date().isoformat(), item.entry.stock.value)
    console.print(tbl)


def _write_manifest(
    out_dir: Path,
    program: Program,
    workbook: Path | None,
    created_at: str,
    *,
    waters: int = 0,
    calendars: int = 0,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    if workbook is not None:
        try:
            sha256 = sha256_file(workbook)
        except OSError:
            pass

    manifest = RunManifest(
        version=__version__,
        program=program.value,
        source=str(workbook.resolve()) if workbook is not None else "google-sheets",
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        waters=waters,
        calendars=calendars,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _write_failure_artifacts(
    out_dir: Path,
    program: Program,
    workbook: Path | None,
    created_at: str,
    *,
    message: str,
    error_code: int = 2,
) -> tuple[Path, Path]:
    report = ExtractionReport(program=program.value, warnings=[message])
    report_path = write_extraction_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir,
        program,
        workbook,
        created_at,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    return report_path, manifest_path


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log extraction details to stderr.",
    ),
) -> None:
    """fish-stocker CLI."""
    _configure_logging(verbose)


# ── Query commands ───────────────────────────────────────────────


@app.command()
def waters(
    program: str = _PROGRAM_OPT,
    workbook: Path | None = _WORKBOOK_OPT,
    api_key: str = _API_KEY_OPT,
    year: int | None = _YEAR_OPT,
    quiet: bool = _QUIET_OPT,
) -> None:
    """List every water in a program's schedule."""
    prog = _program_or_exit(program)
    result = _load(prog, None, workbook, api_key, year, quiet=quiet)
    for name in result.water_names:
        console.print(name, markup=False, highlight=False)


@app.command()
def calendar(
    program: str = _PROGRAM_OPT,
    water: list[str] | None = _WATER_OPT,
    workbook: Path | None = _WORKBOOK_OPT,
    api_key: str = _API_KEY_OPT,
    year: int | None = _YEAR_OPT,
    now: str | None = _NOW_OPT,
    show_all: bool = typer.Option(False, "--all", help="Show every date."),
    show_stocked: bool = typer.Option(False, "--stocked", help="Show only stocked dates."),
    show_next: bool = typer.Option(False, "--next", help="Show the next stocking."),
    show_last: bool = typer.Option(False, "--last", help="Show the most recent stocking."),
    quiet: bool = _QUIET_OPT,
) -> None:
    """Print stocking calendars for the selected waters."""
    prog = _program_or_exit(program)
    ref = _now_or_exit(now)
    result = _load(prog, water, workbook, api_key, year, quiet=quiet)

    for wanted in water or []:
        if result.lookup(wanted) is None and not any(
            d.water_name.lower() == wanted.strip().lower() for d in result.dropped
        ):
            console.print(f"  [yellow]![/yellow] No water named {wanted!r}", highlight=False)

    for name in sorted(result.calendars):
        text = describe(
            result.calendars[name],
            ref,
            show_all=show_all,
            show_stocked=show_stocked,
            show_next=show_next,
            show_last=show_last,
        )
        console.print(f"[bold]{name}[/bold]", highlight=False)
        console.print(text or "No Data", markup=False, highlight=False)


@app.command(name="next")
def next_(
    program: str = _PROGRAM_OPT,
    water: list[str] | None = _WATER_OPT,
    workbook: Path | None = _WORKBOOK_OPT,
    api_key: str = _API_KEY_OPT,
    year: int | None = _YEAR_OPT,
    now: str | None = _NOW_OPT,
    quiet: bool = _QUIET_OPT,
) -> None:
    """Rank waters by their upcoming stocking, soonest first."""
    prog = _program_or_exit(program)
    ref = _now_or_exit(now)
    result = _load(prog, water, workbook, api_key, year, quiet=quiet)
    _print_ranking("Next Stocking", rank_next(result, ref))


@app.command()
def last(
    program: str = _PROGRAM_OPT,
    water: list[str] | None = _WATER_OPT,
    workbook: Path | None = _WORKBOOK_OPT,
    api_key: str = _API_KEY_OPT,
    year: int | None = _YEAR_OPT,
    now: str | None = _NOW_OPT,
    quiet: bool = _QUIET_OPT,
) -> None:
    """Rank waters by their most recent stocking, newest first."""
    prog = _program_or_exit(program)
    ref = _now_or_exit(now)
    result = _load(prog, water, workbook, api_key, year, quiet=quiet)
    _print_ranking("Last Stocking", rank_last(result, ref))


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    program: str = _PROGRAM_OPT,
    water: list[str] | None = _WATER_OPT,
    workbook: Path | None = _WORKBOOK_OPT,
    api_key: str = _API_KEY_OPT,
    year: int | None = _YEAR_OPT,
    now: str | None = _NOW_OPT,
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for workbook + extraction report + manifest.",
    ),
    quiet: bool = _QUIET_OPT,
) -> None:
    """Extract a program's calendars and write them to an Excel workbook."""
    echo = _printer(quiet)
    prog = _program_or_exit(program)
    ref = _now_or_exit(now)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]fish-stocker[/bold] v{__version__}\n"
            f"Program: {prog.value}\n"
            f"Source:  {workbook or 'Google Sheets'}\nOutput:  {out_dir}",
            title="Export Start", border_style="blue",
        ))

    # ── Extract ──────────────────────────────────────────────────
    echo("[blue]>[/blue] Extracting calendars …")
    try:
        source = _open_source(workbook, api_key)
        result = extract(prog, water, source=source, base_year=year)
    except (StockerError, FileNotFoundError, ValueError, OSError) as exc:
        code = 1 if isinstance(exc, GridFetchError) else 2
        report_path, manifest_path = _write_failure_artifacts(
            out_dir, prog, workbook, created_at, message=str(exc), error_code=code,
        )
        _err(str(exc))
        console.print(f"  Extraction report -> {report_path}")
        console.print(f"  Manifest          -> {manifest_path}")
        raise typer.Exit(code=code)

    try:
        report = build_extraction_report(prog, result)
        report_path = write_extraction_report(out_dir, report)
        echo(f"  {report.rows_out} calendar(s) from {report.rows_in} water(s)")
        if not quiet:
            for w in report.warnings:
                console.print(f"  [yellow]![/yellow] {w}", highlight=False)
        echo(f"  Extraction report -> {report_path}")

        # ── Rank ─────────────────────────────────────────────────
        echo("[blue]>[/blue] Ranking next/last stockings …")
        next_df = ranking_frame(rank_next(result, ref))
        last_df = ranking_frame(rank_last(result, ref))

        # ── Write workbook ───────────────────────────────────────
        echo("[blue]>[/blue] Writing workbook …")
        workbook_path = write_report(out_dir, calendar_frame(result), next_df, last_df, report)
        echo(f"  Workbook -> {workbook_path}")

        manifest_path = _write_manifest(
            out_dir,
            prog,
            workbook,
            created_at,
            waters=report.rows_in,
            calendars=report.rows_out,
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(Panel(
                f"[green]Done[/green] — {report.rows_out} calendar(s) -> {workbook_path}",
                title="Export Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        message = f"Unexpected internal error: {exc}"
        report_path, manifest_path = _write_failure_artifacts(
            out_dir, prog, workbook, created_at, message=message, error_code=1,
        )
        _err(message)
        console.print(f"  Extraction report -> {report_path}")
        console.print(f"  Manifest          -> {manifest_path}")
        raise typer.Exit(code=1)
