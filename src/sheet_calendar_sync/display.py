"""
Rich renderers for the CLI.

Importable functions:
  list_calendars(registry, console, configured_uid)  — table of EDS calendars
  render_rows(sheet, layout, console)  — the sheet's output block
  render_results(results, stats, console)  — per-row outcomes of an upload
"""

from datetime import date
from datetime import datetime
from datetime import time

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sheet_calendar_sync.layout import SheetLayout
from sheet_calendar_sync.models import RowOutcome
from sheet_calendar_sync.models import RowResult
from sheet_calendar_sync.models import SyncStats
from sheet_calendar_sync.parsers import format_date_only
from sheet_calendar_sync.parsers import format_time_only

_OUTCOME_STYLE = {
    RowOutcome.CREATED: "green",
    RowOutcome.UPDATED: "cyan",
    RowOutcome.DELETED: "yellow",
    RowOutcome.SKIPPED_EMPTY: "dim",
    RowOutcome.SKIPPED_STALE_ID: "yellow",
    RowOutcome.FAILED: "bold red",
}


def list_calendars(registry, console: Console, configured_uid: str | None = None) -> None:
    """Render all configured EDS calendars as a Rich table."""
    import gi

    gi.require_version("EDataServer", "1.2")
    gi.require_version("ECal", "2.0")
    from gi.repository import ECal
    from gi.repository import EDataServer

    sources = registry.list_sources(EDataServer.SOURCE_EXTENSION_CALENDAR)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Display Name", style="bold")
    table.add_column("Account")
    table.add_column("Mode")
    table.add_column("UID", style="dim")

    for source in sources:
        name = source.get_display_name() or "(unnamed)"
        uid = source.get_uid() or ""
        parent = source.get_parent()
        account = ""
        if parent:
            parent_source = registry.ref_source(parent)
            if parent_source:
                account = parent_source.get_display_name() or ""
        try:
            client = ECal.Client.connect_sync(source, ECal.ClientSourceType.EVENTS, 5, None)
            mode = "Read-write" if not client.is_readonly() else "Read-only"
            mode_style = "green" if not client.is_readonly() else "yellow"
        except Exception:
            mode = "Unknown"
            mode_style = "red"

        name_cell = Text(name)
        if uid and uid == configured_uid:
            name_cell.append("  (configured)", style="green")
        table.add_row(name_cell, account, Text(mode, style=mode_style), uid)

    console.print(table)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "☑" if value else "☐"
    if isinstance(value, datetime):
        return f"{format_date_only(value)} {format_time_only(value)}"
    if isinstance(value, date):
        return format_date_only(value)
    if isinstance(value, time):
        return format_time_only(value)
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def render_rows(sheet, layout: SheetLayout, console: Console) -> int:
    """Print the output block; returns the number of non-empty rows shown."""
    cols = layout.columns
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Row", justify="right", style="dim")
    table.add_column("ID", overflow="fold", max_width=24)
    table.add_column("Title", style="bold")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Hours", justify="right")
    table.add_column("Upload", justify="center")
    table.add_column("Status")

    shown = 0
    for row in range(layout.first_data_row, sheet.last_data_row() + 1):
        values = [sheet.read_cell(row, col) for col in cols.output_columns]
        if all(v is None or v == "" for v in values):
            continue
        table.add_row(str(row), *(_cell(v) for v in values))
        shown += 1

    if shown:
        console.print(table)
    else:
        console.print("[yellow]Output block is empty.[/]")
    return shown


def render_results(results: list[RowResult], stats: SyncStats, console: Console) -> None:
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Row", justify="right")
    table.add_column("Outcome")
    table.add_column("Status")
    for result in results:
        style = _OUTCOME_STYLE[result.outcome]
        table.add_row(str(result.row), Text(result.outcome.value, style=style), result.message)

    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column(justify="right")
    summary.add_row("Created", str(stats.created))
    summary.add_row("Updated", str(stats.updated))
    summary.add_row("Deleted", str(stats.deleted))
    summary.add_row("Skipped", str(stats.skipped))
    error_val = Text(str(stats.errors))
    if stats.errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    summary.add_row("Errors", error_val)

    if results:
        console.print(table)
    console.print(Panel(summary, title="[bold]Results[/bold]", expand=False))
