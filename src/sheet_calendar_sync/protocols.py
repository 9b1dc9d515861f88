"""
Collaborator contracts used by the sync core.

Rows and columns are 1-based.  Column arguments are sequences of column
indices rather than contiguous ranges so header-derived layouts with
interleaved columns work unchanged.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from sheet_calendar_sync.models import CalendarEvent


class SheetStore(Protocol):
    def read_cell(self, row: int, col: int) -> object: ...

    def display_text(self, row: int, col: int) -> str: ...

    def write_cell(self, row: int, col: int, value) -> None: ...

    def clear_cells(self, rows: range, cols: Sequence[int]) -> None: ...

    def write_rows(self, start_row: int, cols: Sequence[int], rows: Sequence[Sequence]) -> None: ...

    def set_number_format(self, rows: range, col: int, pattern: str) -> None: ...

    def last_data_row(self) -> int: ...


class CalendarStore(Protocol):
    def get_event_by_id(self, event_id: str) -> CalendarEvent | None: ...

    def create_event(self, title: str, start: datetime, end: datetime) -> CalendarEvent: ...

    def update_event(self, event_id: str, title: str, start: datetime, end: datetime) -> None: ...

    def delete_event(self, event_id: str) -> None: ...

    def get_events_in_range(
        self, start: datetime, end_exclusive: datetime
    ) -> Sequence[CalendarEvent]: ...
