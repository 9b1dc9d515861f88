"""
SheetCalendarSync — thin orchestrator that delegates to sync submodules.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field

from sheet_calendar_sync.classifier import Action
from sheet_calendar_sync.classifier import Download
from sheet_calendar_sync.classifier import EditNotification
from sheet_calendar_sync.classifier import Ignore
from sheet_calendar_sync.classifier import UploadRows
from sheet_calendar_sync.classifier import classify_edit
from sheet_calendar_sync.classifier import is_true_value
from sheet_calendar_sync.layout import SheetLayout
from sheet_calendar_sync.models import RowResult
from sheet_calendar_sync.models import SyncStats
from sheet_calendar_sync.protocols import CalendarStore
from sheet_calendar_sync.protocols import SheetStore
from sheet_calendar_sync.sync.download import download_range
from sheet_calendar_sync.sync.reconcile import reconcile_rows


@dataclass
class SyncReport:
    """What one edit notification led to."""

    action: Action
    results: list[RowResult] = field(default_factory=list)
    downloaded: int = 0


class SheetCalendarSync:
    """Main synchronization engine."""

    def __init__(self, layout: SheetLayout, sheet: SheetStore, calendar: CalendarStore):
        self.layout = layout
        self.sheet = sheet
        self.calendar = calendar
        self.logger = logging.getLogger(__name__)
        self.stats = SyncStats()

    def _upload_flag_set(self, row: int) -> bool:
        value = self.sheet.read_cell(row, self.layout.columns.upload)
        return is_true_value(value, self.layout.true_indicator)

    def handle_edit(self, notification: EditNotification) -> SyncReport:
        """Classify one edit notification and run whatever it asks for."""
        action = classify_edit(notification, self.layout)

        if isinstance(action, Download):
            self.logger.debug(f"Edit {notification.range_address}: download requested")
            return SyncReport(action, downloaded=self.download())

        if isinstance(action, UploadRows):
            rows: Iterable[int] = action.rows
            if not notification.is_single_cell:
                rows = [row for row in action.rows if self._upload_flag_set(row)]
            self.logger.debug(f"Edit {notification.range_address}: upload rows {list(rows)}")
            return SyncReport(action, results=self.upload_rows(rows))

        if isinstance(action, Ignore):
            self.logger.debug(f"Edit {notification.range_address} ignored: {action.reason}")
        return SyncReport(action)

    def download(self) -> int:
        """Download the configured period; the download checkbox is always reset."""
        try:
            period_start = self.sheet.read_cell(*self.layout.period_start_cell)
            period_end = self.sheet.read_cell(*self.layout.period_end_cell)
            return download_range(
                self.layout,
                self.stats,
                self.logger,
                self.sheet,
                self.calendar,
                period_start,
                period_end,
            )
        finally:
            self.sheet.write_cell(*self.layout.download_cell, False)

    def upload_rows(self, rows: Iterable[int]) -> list[RowResult]:
        return reconcile_rows(
            self.layout, self.stats, self.logger, self.sheet, self.calendar, rows
        )
