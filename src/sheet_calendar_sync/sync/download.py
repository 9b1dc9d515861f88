"""
Range download: replace the output block with every event in a period.
"""

from datetime import timedelta

from sheet_calendar_sync.codec import event_to_row
from sheet_calendar_sync.codec import row_values
from sheet_calendar_sync.layout import SheetLayout
from sheet_calendar_sync.models import ConfigurationError
from sheet_calendar_sync.models import SyncStats
from sheet_calendar_sync.parsers import format_date_only
from sheet_calendar_sync.parsers import parse_date
from sheet_calendar_sync.parsers import start_of_day
from sheet_calendar_sync.protocols import CalendarStore
from sheet_calendar_sync.protocols import SheetStore


def _require_period_date(raw, name: str, date_order: str):
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ConfigurationError(f"Missing {name}")
    day = parse_date(raw, date_order)
    if day is None:
        raise ConfigurationError(f"Invalid {name}: {raw!r}")
    return day


def download_range(
    layout: SheetLayout,
    stats: SyncStats,
    logger,
    sheet: SheetStore,
    calendar: CalendarStore,
    period_start,
    period_end,
) -> int:
    """Fetch every event in the inclusive period and rewrite the output block.

    Both bounds are validated and the events fetched before anything in the
    sheet is touched, so a failure leaves the previous output intact.
    Returns the number of rows written.
    """
    first_day = _require_period_date(period_start, "period start", layout.date_order)
    last_day = _require_period_date(period_end, "period end", layout.date_order)
    if last_day < first_day:
        raise ConfigurationError(
            f"Period end {format_date_only(last_day)} is before "
            f"period start {format_date_only(first_day)}"
        )

    window_start = start_of_day(first_day)
    window_end = start_of_day(last_day) + timedelta(days=1)
    logger.info(
        f"Downloading events from {format_date_only(first_day)} "
        f"to {format_date_only(last_day)} (inclusive)"
    )
    events = list(calendar.get_events_in_range(window_start, window_end))
    logger.debug(f"Calendar returned {len(events)} event(s)")

    cols = layout.columns
    first_row = layout.first_data_row
    last_row = max(sheet.last_data_row(), first_row)
    sheet.clear_cells(range(first_row, last_row + 1), cols.output_columns)

    if not events:
        logger.info("No events in period; output block cleared")
        return 0

    rows = [row_values(event_to_row(event)) + [False] for event in events]
    sheet.write_rows(first_row, cols.data_columns + (cols.upload,), rows)

    written = range(first_row, first_row + len(rows))
    sheet.set_number_format(written, cols.date, layout.formats["date"])
    sheet.set_number_format(written, cols.time, layout.formats["time"])
    sheet.set_number_format(written, cols.duration, layout.formats["duration"])

    stats.downloaded += len(rows)
    logger.info(f"Wrote {len(rows)} event(s) starting at row {first_row}")
    return len(rows)
