"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging
import os

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from sheet_calendar_sync.models import SyncConfig

logger = logging.getLogger(__name__)

_OFFLINE_KEYWORDS = frozenset(
    {
        "offline",
        "network",
        "transport",
        "unreachable",
        "not connected",
        "no route",
        "authentication failed",
        "connection refused",
        "temporary failure",
    }
)


def check_workbook(cfg: SyncConfig) -> list[tuple[str, str, str]]:
    """Return (label, detail, hint) issues for the workbook; no EDS needed."""
    issues: list[tuple[str, str, str]] = []
    path = cfg.workbook_path
    if not path.exists():
        logger.error("Workbook not found: %s", path)
        issues.append(("Workbook", f"Not found: {path}", "Check the workbook setting"))
        return issues
    if path.suffix.lower() not in (".xlsx", ".xlsm"):
        issues.append(("Workbook", f"Unsupported file type: {path.suffix}", "Use an .xlsx file"))
    if not os.access(path, os.W_OK):
        logger.error("Workbook not writable: %s", path)
        issues.append(("Workbook", f"{path}: not writable", f"Check permissions on {path}"))
    return issues


def run_preflight_checks(cfg: SyncConfig, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    import gi

    gi.require_version("ECal", "2.0")
    gi.require_version("EDataServer", "1.2")
    from gi.repository import ECal
    from gi.repository import EDataServer
    from gi.repository import GLib

    issues = check_workbook(cfg)

    # 1. EDS registry reachable
    try:
        registry = EDataServer.SourceRegistry.new_sync(None)
    except Exception as e:
        logger.error("EDS registry unreachable: %s", e)
        issues.append(
            (
                "EDS registry",
                str(e),
                "Is evolution-data-server running?",
            )
        )
        _print_issues(issues, console)
        return False

    # 2. Calendar UID exists + connectable
    source = registry.ref_source(cfg.calendar_id)
    if source is None:
        logger.error("Calendar UID not found in EDS: %s", cfg.calendar_id)
        issues.append(
            (
                "Calendar",
                f"UID not found: {cfg.calendar_id}",
                "Run: sheet-calendar-sync calendars",
            )
        )
    else:
        try:
            client = ECal.Client.connect_sync(source, ECal.ClientSourceType.EVENTS, 5, None)
            if client.is_readonly():
                issues.append(
                    (
                        "Calendar",
                        f"{source.get_display_name()} is read-only",
                        "Uploads need a writable calendar",
                    )
                )
        except GLib.Error as e:
            msg = e.message or str(e)
            logger.error("Cannot connect to calendar (%s): %s", cfg.calendar_id, msg)
            if any(kw in msg.lower() for kw in _OFFLINE_KEYWORDS):
                account_name = _get_parent_display_name(registry, source)
                if account_name:
                    hint = f"Account '{account_name}' appears offline — check GNOME Online Accounts"
                else:
                    hint = "Calendar appears offline — check GNOME Online Accounts"
            else:
                hint = msg
            issues.append(("Calendar", f"Connection failed: {msg}", hint))

    if issues:
        _print_issues(issues, console)
        return False

    return True


def _get_parent_display_name(registry, source) -> str:
    """Return the display name of the source's parent account, or empty string."""
    parent_uid = source.get_parent()
    if not parent_uid:
        return ""
    parent_source = registry.ref_source(parent_uid)
    if not parent_source:
        return ""
    return parent_source.get_display_name() or ""


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
