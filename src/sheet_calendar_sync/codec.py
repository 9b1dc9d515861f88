"""
Row codec: one calendar event <-> one sheet row.

Pure functions only; store access happens in the reconciler and downloader.
"""

from datetime import datetime
from datetime import time

from sheet_calendar_sync.models import CalendarEvent
from sheet_calendar_sync.models import RowFields
from sheet_calendar_sync.models import RowValidationError
from sheet_calendar_sync.parsers import DAY_FIRST
from sheet_calendar_sync.parsers import add_hours
from sheet_calendar_sync.parsers import compose
from sheet_calendar_sync.parsers import parse_date
from sheet_calendar_sync.parsers import parse_duration
from sheet_calendar_sync.parsers import parse_time


def event_to_row(event: CalendarEvent) -> RowFields:
    return RowFields(
        id=event.id,
        title=event.title,
        date=event.start.date(),
        time=time(event.start.hour, event.start.minute),
        duration_hours=event.duration_hours,
    )


def row_values(fields: RowFields) -> list:
    """Cell values for ColumnMap.data_columns, in the same order."""
    return [fields.id, fields.title, fields.date, fields.time, fields.duration_hours]


def row_to_event_fields(
    row: int,
    title,
    raw_date,
    raw_time,
    raw_duration,
    *,
    date_order: str = DAY_FIRST,
    time_display: str | None = None,
) -> tuple[str, datetime, datetime]:
    """Validate a row's cells and return (title, start, end).

    Raises RowValidationError naming the row and the offending field.
    """
    title = "" if title is None else str(title).strip()
    if not title:
        raise RowValidationError(row, "title", "missing title")

    day = parse_date(raw_date, date_order)
    if day is None:
        if raw_date is None or str(raw_date).strip() == "":
            raise RowValidationError(row, "date", "missing date")
        raise RowValidationError(row, "date", f"invalid date {raw_date!r}")

    try:
        start_time = parse_time(raw_time, time_display)
    except ValueError as e:
        raise RowValidationError(row, "time", str(e)) from None
    if start_time is None:
        raise RowValidationError(row, "time", "missing time")

    try:
        hours = parse_duration(raw_duration)
    except ValueError as e:
        raise RowValidationError(row, "duration", str(e)) from None

    start = compose(day, start_time)
    try:
        end = add_hours(start, hours)
    except (OverflowError, ValueError):
        raise RowValidationError(row, "duration", f"duration {raw_duration!r} is out of range") from None
    return title, start, end
