"""
SheetStore backed by a local .xlsx workbook (openpyxl).
"""

import logging
from collections.abc import Sequence
from datetime import date
from datetime import datetime
from datetime import time
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from sheet_calendar_sync.models import ConfigurationError
from sheet_calendar_sync.models import StoreError
from sheet_calendar_sync.parsers import format_date_only
from sheet_calendar_sync.parsers import format_time_only

logger = logging.getLogger(__name__)


class WorkbookSheetStore:
    """One worksheet of an .xlsx file.

    Use as a context manager: the workbook is saved on exit.  Rows already
    reconciled before an error have changed the calendar too, so the file is
    saved even when the block raised.
    """

    def __init__(self, path: Path, sheet_name: str | None = None):
        self.path = Path(path)
        self.sheet_name = sheet_name
        self.workbook: Workbook | None = None
        self.sheet: Worksheet | None = None

    def open(self) -> "WorkbookSheetStore":
        if not self.path.exists():
            raise ConfigurationError(f"Workbook not found: {self.path}")
        try:
            self.workbook = load_workbook(self.path)
        except (InvalidFileException, OSError, KeyError) as e:
            raise StoreError(f"Cannot open workbook {self.path}: {e}") from e

        if self.sheet_name:
            if self.sheet_name not in self.workbook.sheetnames:
                raise ConfigurationError(
                    f"Sheet {self.sheet_name!r} not found in {self.path.name} "
                    f"(available: {', '.join(self.workbook.sheetnames)})"
                )
            self.sheet = self.workbook[self.sheet_name]
        else:
            self.sheet = self.workbook.active
        logger.debug(f"Opened {self.path} [{self.sheet.title}]")
        return self

    def save(self) -> None:
        if self.workbook is None:
            return
        try:
            self.workbook.save(self.path)
        except OSError as e:
            raise StoreError(f"Cannot save workbook {self.path}: {e}") from e
        logger.debug(f"Saved {self.path}")

    def __enter__(self) -> "WorkbookSheetStore":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.save()
        return False

    @property
    def title(self) -> str:
        return self.sheet.title if self.sheet is not None else (self.sheet_name or "")

    # ------------------------------------------------------------------ #
    # SheetStore interface                                                 #
    # ------------------------------------------------------------------ #

    def read_cell(self, row: int, col: int):
        return self.sheet.cell(row=row, column=col).value

    def display_text(self, row: int, col: int) -> str:
        """Best-effort rendering of a cell; openpyxl keeps no rendered text."""
        value = self.read_cell(row, col)
        if value is None:
            return ""
        if isinstance(value, datetime):
            return f"{format_date_only(value)} {format_time_only(value)}"
        if isinstance(value, date):
            return format_date_only(value)
        if isinstance(value, time):
            return format_time_only(value)
        return str(value)

    def header_values(self, row: int) -> list:
        return [cell.value for cell in self.sheet[row]]

    def write_cell(self, row: int, col: int, value) -> None:
        self.sheet.cell(row=row, column=col).value = value

    def clear_cells(self, rows: range, cols: Sequence[int]) -> None:
        for row in rows:
            for col in cols:
                self.sheet.cell(row=row, column=col).value = None

    def write_rows(self, start_row: int, cols: Sequence[int], rows: Sequence[Sequence]) -> None:
        for offset, values in enumerate(rows):
            if len(values) != len(cols):
                raise StoreError(
                    f"Row {start_row + offset}: {len(values)} values for {len(cols)} columns"
                )
            for col, value in zip(cols, values):
                self.sheet.cell(row=start_row + offset, column=col).value = value

    def set_number_format(self, rows: range, col: int, pattern: str) -> None:
        for row in rows:
            self.sheet.cell(row=row, column=col).number_format = pattern

    def last_data_row(self) -> int:
        """Last row holding any value; 0 for an empty sheet."""
        for row in range(self.sheet.max_row, 0, -1):
            if any(cell.value is not None for cell in self.sheet[row]):
                return row
        return 0
