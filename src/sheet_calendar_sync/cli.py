"""
Command-line interface for Sheet Calendar Sync.

Each mutating command simulates the host delivering one edit notification
(a checkbox ticked in the workbook) and hands it to the sync core.
"""

import logging
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from openpyxl.utils import get_column_letter
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from sheet_calendar_sync.classifier import Download
from sheet_calendar_sync.classifier import EditNotification
from sheet_calendar_sync.classifier import Ignore
from sheet_calendar_sync.display import render_results
from sheet_calendar_sync.display import render_rows
from sheet_calendar_sync.layout import SheetLayout
from sheet_calendar_sync.layout import load_layout
from sheet_calendar_sync.layout import parse_range_address
from sheet_calendar_sync.models import CONFIG_SECTION
from sheet_calendar_sync.models import DEFAULT_CONFIG
from sheet_calendar_sync.models import CalendarSyncError
from sheet_calendar_sync.models import SyncConfig
from sheet_calendar_sync.parsers import parse_date
from sheet_calendar_sync.workbook import WorkbookSheetStore

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Two-way sync between spreadsheet rows and an EDS calendar.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if CONFIG_SECTION not in parser:
        return {}
    return dict(parser[CONFIG_SECTION])


def _build_config(
    calendar: str | None,
    workbook: Path | None,
    sheet: str | None,
    yes: bool = False,
    require_calendar: bool = True,
) -> SyncConfig:
    config_file = _load_config_file(state.config_path)
    calendar_id = calendar or config_file.get("calendar_id") or ""
    workbook_path = workbook or (
        Path(config_file["workbook"]).expanduser() if config_file.get("workbook") else None
    )

    if workbook_path is None:
        console.print(
            "[bold red]Error:[/] A workbook must be provided via [cyan]--workbook[/] "
            "or [cyan]workbook[/] in the config file."
        )
        raise typer.Exit(1)
    if require_calendar and not calendar_id:
        console.print(
            "[bold red]Error:[/] A calendar UID must be provided via [cyan]--calendar[/] "
            "or [cyan]calendar_id[/] in the config file."
        )
        raise typer.Exit(1)

    options = {k: v for k, v in config_file.items() if k not in ("calendar_id", "workbook")}
    if sheet:
        options["sheet_name"] = sheet

    return SyncConfig(
        calendar_id=calendar_id,
        workbook_path=workbook_path,
        sheet_options=options,
        verbose=state.verbose,
        yes=yes,
    )


def _connect_calendar(calendar_id: str):
    """Connect to EDS and return a CalendarStore for calendar_id."""
    import gi

    gi.require_version("EDataServer", "1.2")
    from gi.repository import EDataServer

    from sheet_calendar_sync.calendar_store import EDSCalendarStore
    from sheet_calendar_sync.eds_client import EDSCalendarClient

    logging.getLogger(__name__).info("Connecting to Evolution Data Server...")
    registry = EDataServer.SourceRegistry.new_sync(None)
    client = EDSCalendarClient(registry, calendar_id)
    client.connect()
    return EDSCalendarStore(client)


def _print_info_panel(cfg: SyncConfig, layout: SheetLayout, operation: Text) -> None:
    from sheet_calendar_sync.eds_client import get_calendar_display_info

    cal_name, cal_account, cal_uid = get_calendar_display_info(cfg.calendar_id)
    cal_display = cal_name + (f" ({cal_account})" if cal_account else "")

    info = Text()
    info.append("  Calendar:  ", style="bold")
    info.append(f"{cal_display}\n")
    info.append(f"             {cal_uid}\n", style="dim")
    info.append("  Workbook:  ", style="bold")
    info.append(f"{cfg.workbook_path}")
    if layout.sheet_name:
        info.append(f" [{layout.sheet_name}]")
    info.append("\n  Operation: ", style="bold")
    info.append_text(operation)

    console.print(Panel(info, title="[bold]Sheet Calendar Sync[/bold]"))


def _cell_notification(
    layout: SheetLayout, row: int, last_row: int, col: int, last_col: int, value
) -> EditNotification:
    address = f"{get_column_letter(col)}{row}"
    if (row, col) != (last_row, last_col):
        address += f":{get_column_letter(last_col)}{last_row}"
    return EditNotification(
        range_address=address,
        row=row,
        last_row=last_row,
        column=col,
        last_column=last_col,
        raw_value=value,
        sheet_name=layout.sheet_name,
    )


def _parse_rows(specs: list[str]) -> list[int]:
    """Accept '6', '6-8' and '6,9' forms."""
    rows: set[int] = set()
    for spec in specs:
        for part in spec.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                if "-" in part:
                    lo, hi = (int(p) for p in part.split("-", 1))
                    if hi < lo:
                        raise ValueError
                    rows.update(range(lo, hi + 1))
                else:
                    rows.add(int(part))
            except ValueError:
                raise typer.BadParameter(f"Invalid row spec: {part!r}") from None
    return sorted(rows)


def _run_edits(cfg: SyncConfig, operation: Text, make_edits, confirm: bool = True) -> None:
    """Shared runner: preflight, open workbook, apply edits, dispatch, show results.

    ``make_edits(sheet, layout)`` writes the user's cell changes and returns
    the notifications the host would have delivered for them.
    """
    from sheet_calendar_sync.preflight import run_preflight_checks
    from sheet_calendar_sync.sync import SheetCalendarSync

    if not run_preflight_checks(cfg, console):
        raise typer.Exit(1)

    try:
        calendar = _connect_calendar(cfg.calendar_id)
        with WorkbookSheetStore(cfg.workbook_path, cfg.sheet_options.get("sheet_name")) as sheet:
            layout = load_layout(cfg.sheet_options, header_reader=sheet.header_values)
            _print_info_panel(cfg, layout, operation)

            if confirm and not cfg.yes:
                typer.confirm("Proceed?", abort=True)

            engine = SheetCalendarSync(layout, sheet, calendar)
            results = []
            for notification in make_edits(sheet, layout):
                report = engine.handle_edit(notification)
                if isinstance(report.action, Ignore):
                    console.print(
                        f"[yellow]Ignored edit {notification.range_address}:[/] "
                        f"{report.action.reason}"
                    )
                elif isinstance(report.action, Download):
                    console.print(f"[green]Downloaded {report.downloaded} event(s).[/]")
                results.extend(report.results)
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except typer.Abort:
        raise
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e

    if results:
        render_results(results, engine.stats, console)
    if engine.stats.errors:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_CAL_OPT = Annotated[
    str | None,
    typer.Option("--calendar", "-C", help="EDS calendar UID (overrides config)"),
]
_WB_OPT = Annotated[
    Path | None,
    typer.Option("--workbook", "-w", help="Path to the .xlsx workbook (overrides config)"),
]
_SHEET_OPT = Annotated[
    str | None,
    typer.Option("--sheet", "-s", help="Worksheet name (default: config or active sheet)"),
]
_YES = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")]


# ---------------------------------------------------------------------------
# Subcommands: download / upload / edit
# ---------------------------------------------------------------------------


@app.command()
def download(
    calendar: _CAL_OPT = None,
    workbook: _WB_OPT = None,
    sheet: _SHEET_OPT = None,
    from_date: Annotated[
        str | None,
        typer.Option("--from", help="Period start (written to the period-start cell)"),
    ] = None,
    to_date: Annotated[
        str | None,
        typer.Option("--to", help="Period end (written to the period-end cell)"),
    ] = None,
    yes: _YES = False,
) -> None:
    """Replace the output block with every event in the configured period.

    Equivalent to ticking the download checkbox in the sheet.
    """
    cfg = _build_config(calendar, workbook, sheet, yes=yes)

    def _edits(store: WorkbookSheetStore, layout: SheetLayout):
        period = ((from_date, layout.period_start_cell), (to_date, layout.period_end_cell))
        for raw, cell in period:
            if raw is not None:
                parsed = parse_date(raw, layout.date_order)
                store.write_cell(*cell, parsed if parsed is not None else raw)
        row, col = layout.download_cell
        store.write_cell(row, col, True)
        return [_cell_notification(layout, row, row, col, col, True)]

    _run_edits(cfg, Text("DOWNLOAD (overwrites the output block)", style="bold yellow"), _edits)


@app.command()
def upload(
    rows: Annotated[list[str], typer.Argument(help="Rows to upload, e.g. 6, 6-8, 6,9")],
    calendar: _CAL_OPT = None,
    workbook: _WB_OPT = None,
    sheet: _SHEET_OPT = None,
    yes: _YES = False,
) -> None:
    """Push edited rows to the calendar (create, update or delete).

    Equivalent to ticking each row's upload checkbox.
    """
    cfg = _build_config(calendar, workbook, sheet, yes=yes)
    row_numbers = _parse_rows(rows)

    def _edits(store: WorkbookSheetStore, layout: SheetLayout):
        col = layout.columns.upload
        notifications = []
        for row in row_numbers:
            store.write_cell(row, col, True)
            notifications.append(_cell_notification(layout, row, row, col, col, True))
        return notifications

    operation = Text(f"UPLOAD rows {', '.join(map(str, row_numbers))}", style="bold green")
    _run_edits(cfg, operation, _edits)


@app.command()
def edit(
    cell_range: Annotated[str, typer.Argument(help="Edited range, e.g. F6 or F6:F8")],
    value: Annotated[
        str | None,
        typer.Option("--value", help="Value typed into the range (default: leave cells as-is)"),
    ] = None,
    calendar: _CAL_OPT = None,
    workbook: _WB_OPT = None,
    sheet: _SHEET_OPT = None,
) -> None:
    """Replay one edit notification for RANGE, as the spreadsheet host would."""
    cfg = _build_config(calendar, workbook, sheet, yes=True)

    try:
        row, last_row, col, last_col = parse_range_address(cell_range)
    except CalendarSyncError as e:
        raise typer.BadParameter(str(e)) from None

    def _edits(store: WorkbookSheetStore, layout: SheetLayout):
        raw = value
        if value is not None:
            if value.strip().upper() in ("TRUE", "FALSE"):
                raw = value.strip().upper() == "TRUE"
            for r in range(row, last_row + 1):
                for c in range(col, last_col + 1):
                    store.write_cell(r, c, raw)
        else:
            raw = store.read_cell(row, col)
        return [_cell_notification(layout, row, last_row, col, last_col, raw)]

    _run_edits(cfg, Text(f"EDIT {cell_range.upper()}", style="bold cyan"), _edits, confirm=False)


# ---------------------------------------------------------------------------
# Subcommand: show
# ---------------------------------------------------------------------------


@app.command()
def show(
    workbook: _WB_OPT = None,
    sheet: _SHEET_OPT = None,
) -> None:
    """Print the sheet's output block without touching the calendar."""
    cfg = _build_config(None, workbook, sheet, require_calendar=False)
    try:
        store = WorkbookSheetStore(cfg.workbook_path, cfg.sheet_options.get("sheet_name")).open()
        layout = load_layout(cfg.sheet_options, header_reader=store.header_values)
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    console.print(f"[bold]Sheet:[/] {store.title} [dim]({cfg.workbook_path})[/dim]")
    render_rows(store, layout, console)


# ---------------------------------------------------------------------------
# Subcommand: status
# ---------------------------------------------------------------------------


@app.command()
def status() -> None:
    """Show configuration and resolved sheet layout."""
    config_exists = state.config_path.exists()
    config_file = _load_config_file(state.config_path)

    info = Text()
    info.append("  Config:    ", style="bold")
    info.append(str(state.config_path) + " ")
    info.append("✓" if config_exists else "(not found)", style="green" if config_exists else "red")

    calendar_id = config_file.get("calendar_id")
    if calendar_id:
        try:
            from sheet_calendar_sync.eds_client import get_calendar_display_info

            cal_name, cal_account, _ = get_calendar_display_info(calendar_id)
            cal_display = cal_name + (f" ({cal_account})" if cal_account else "")
        except Exception:
            cal_display = calendar_id
        info.append("\n  Calendar:  ", style="bold")
        info.append(cal_display + "\n")
        info.append(f"             {calendar_id}", style="dim")

    workbook = config_file.get("workbook")
    if workbook:
        path = Path(workbook).expanduser()
        info.append("\n  Workbook:  ", style="bold")
        info.append(str(path) + " ")
        info.append("✓" if path.exists() else "(not found)", style="green" if path.exists() else "red")

    console.print(Panel(info, title="[bold]Sheet Calendar Sync — Status[/bold]"))

    if not workbook or not Path(workbook).expanduser().exists():
        return

    options = {k: v for k, v in config_file.items() if k not in ("calendar_id", "workbook")}
    try:
        store = WorkbookSheetStore(Path(workbook).expanduser(), options.get("sheet_name")).open()
        layout = load_layout(options, header_reader=store.header_values)
    except CalendarSyncError as e:
        console.print(f"[bold red]Layout error:[/] {e}")
        raise typer.Exit(1) from None

    def _addr(cell: tuple[int, int]) -> str:
        return f"{get_column_letter(cell[1])}{cell[0]}"

    cols = layout.columns
    lay = Text()
    lay.append("  Sheet:          ", style="bold")
    lay.append(f"{store.title}\n")
    lay.append("  Download cell:  ", style="bold")
    lay.append(f"{_addr(layout.download_cell)}\n")
    lay.append("  Period:         ", style="bold")
    lay.append(f"{_addr(layout.period_start_cell)} → {_addr(layout.period_end_cell)}\n")
    lay.append("  First data row: ", style="bold")
    lay.append(f"{layout.first_data_row}\n")
    lay.append("  Columns:        ", style="bold")
    lay.append(
        "  ".join(
            f"{name}={get_column_letter(getattr(cols, name))}"
            for name in ("id", "title", "date", "time", "duration", "upload", "status")
        )
    )
    lay.append("\n  Date order:     ", style="bold")
    lay.append(layout.date_order)
    console.print(Panel(lay, title="[bold]Layout[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Subcommand: calendars
# ---------------------------------------------------------------------------


@app.command()
def calendars() -> None:
    """List all configured EDS calendars."""
    import gi

    gi.require_version("EDataServer", "1.2")
    from gi.repository import EDataServer

    from sheet_calendar_sync.display import list_calendars as _list_calendars

    registry = EDataServer.SourceRegistry.new_sync(None)
    configured = _load_config_file(state.config_path).get("calendar_id")
    _list_calendars(registry, console, configured)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
