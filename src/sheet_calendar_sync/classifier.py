"""
Edit classifier: turn one raw edit notification into an action.

Stateless.  The only writes the core itself makes to a control cell reset it
to False, and a False value always classifies as Ignore, so the core's own
writes can never re-trigger it.
"""

from collections.abc import Callable
from dataclasses import dataclass

from sheet_calendar_sync.layout import SheetLayout


@dataclass(frozen=True)
class EditNotification:
    """What the host reports after a user edits a range of cells."""

    range_address: str
    row: int
    last_row: int
    column: int
    last_column: int
    raw_value: object = None
    is_checked: Callable[[], bool] | None = None
    sheet_name: str | None = None

    def covers(self, row: int, col: int) -> bool:
        return self.row <= row <= self.last_row and self.column <= col <= self.last_column

    def covers_column(self, col: int) -> bool:
        return self.column <= col <= self.last_column

    @property
    def is_single_cell(self) -> bool:
        return self.row == self.last_row and self.column == self.last_column


@dataclass(frozen=True)
class Download:
    pass


@dataclass(frozen=True)
class UploadRows:
    first_row: int
    last_row: int

    @property
    def rows(self) -> range:
        return range(self.first_row, self.last_row + 1)


@dataclass(frozen=True)
class Ignore:
    reason: str = ""


Action = Download | UploadRows | Ignore


def is_true_value(value, true_indicator: str = "TRUE") -> bool:
    """A checkbox cell reads as a real boolean or as the sheet's TRUE text."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().casefold() == true_indicator.casefold()
    return False


def is_checkbox_true(notification: EditNotification, true_indicator: str = "TRUE") -> bool:
    """Prefer the host's checked query; fall back to the raw value."""
    if notification.is_checked is not None:
        return bool(notification.is_checked())
    return is_true_value(notification.raw_value, true_indicator)


def classify_edit(notification: EditNotification, layout: SheetLayout) -> Action:
    if layout.sheet_name and notification.sheet_name not in (None, layout.sheet_name):
        return Ignore(f"edit on sheet {notification.sheet_name!r}")

    if notification.covers(*layout.download_cell):
        if notification.is_single_cell and is_checkbox_true(notification, layout.true_indicator):
            return Download()
        return Ignore("download control not checked")

    if not notification.covers_column(layout.columns.upload):
        return Ignore("outside upload column")
    if notification.last_row < layout.first_data_row:
        return Ignore("above data region")

    # A pasted block has no single value; the caller checks each row's flag.
    if notification.is_single_cell and not is_checkbox_true(
        notification, layout.true_indicator
    ):
        return Ignore("upload control not checked")

    return UploadRows(max(notification.row, layout.first_data_row), notification.last_row)
