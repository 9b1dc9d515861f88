"""
Per-row reconciliation: push one edited sheet row to the calendar.
"""

from collections.abc import Iterable

from sheet_calendar_sync.codec import row_to_event_fields
from sheet_calendar_sync.layout import SheetLayout
from sheet_calendar_sync.models import CalendarSyncError
from sheet_calendar_sync.models import RowOutcome
from sheet_calendar_sync.models import RowResult
from sheet_calendar_sync.models import SyncStats
from sheet_calendar_sync.protocols import CalendarStore
from sheet_calendar_sync.protocols import SheetStore

MSG_CREATED = "Created new event."
MSG_RECREATED = "Created new event (previous ID not found)."
MSG_UPDATED = "Updated event."
MSG_DELETED = "Deleted event (empty title)."
MSG_STALE_ID = "Event not found; cleared stale ID."
MSG_EMPTY = "Nothing to do (empty row)."


def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _delete_row_event(
    layout: SheetLayout,
    logger,
    sheet: SheetStore,
    calendar: CalendarStore,
    row: int,
    event_id: str,
) -> RowResult:
    """Handle a row whose title was cleared."""
    cols = layout.columns
    if not event_id:
        return RowResult(row, RowOutcome.SKIPPED_EMPTY, MSG_EMPTY)

    existing = calendar.get_event_by_id(event_id)
    if existing is None:
        sheet.write_cell(row, cols.id, None)
        logger.info(f"Row {row}: event {event_id} not found, cleared stale ID")
        return RowResult(row, RowOutcome.SKIPPED_STALE_ID, MSG_STALE_ID)

    calendar.delete_event(existing.id)
    sheet.clear_cells(range(row, row + 1), cols.data_columns)
    logger.info(f"Row {row}: deleted event {existing.id}")
    return RowResult(row, RowOutcome.DELETED, MSG_DELETED, existing.id)


def _upsert_row_event(
    layout: SheetLayout,
    logger,
    sheet: SheetStore,
    calendar: CalendarStore,
    row: int,
    event_id: str,
    title: str,
) -> RowResult:
    cols = layout.columns
    title, start, end = row_to_event_fields(
        row,
        title,
        sheet.read_cell(row, cols.date),
        sheet.read_cell(row, cols.time),
        sheet.read_cell(row, cols.duration),
        date_order=layout.date_order,
        time_display=sheet.display_text(row, cols.time),
    )

    existing = calendar.get_event_by_id(event_id) if event_id else None
    if existing is not None:
        calendar.update_event(existing.id, title, start, end)
        live_id = existing.id
        result = RowResult(row, RowOutcome.UPDATED, MSG_UPDATED, live_id)
        logger.info(f"Row {row}: updated event {live_id}")
    else:
        created = calendar.create_event(title, start, end)
        live_id = created.id
        message = MSG_RECREATED if event_id else MSG_CREATED
        result = RowResult(row, RowOutcome.CREATED, message, live_id)
        logger.info(f"Row {row}: created event {live_id}")

    # The id cell must always name the live event so a resubmit is an update.
    sheet.write_cell(row, cols.id, live_id)
    sheet.write_cell(row, cols.date, start.date())
    sheet.write_cell(row, cols.time, start.time())
    sheet.write_cell(row, cols.duration, (end - start).total_seconds() / 3600)
    this_row = range(row, row + 1)
    sheet.set_number_format(this_row, cols.date, layout.formats["date"])
    sheet.set_number_format(this_row, cols.time, layout.formats["time"])
    sheet.set_number_format(this_row, cols.duration, layout.formats["duration"])
    return result


def reconcile_row(
    layout: SheetLayout,
    logger,
    sheet: SheetStore,
    calendar: CalendarStore,
    row: int,
) -> RowResult:
    """Create, update or delete the event behind one row.

    Validation and store failures are confined to this row and reported in
    its status cell.  The upload checkbox is reset whatever happens.
    """
    cols = layout.columns
    try:
        event_id = _cell_text(sheet.read_cell(row, cols.id))
        title = _cell_text(sheet.read_cell(row, cols.title))
        if not title:
            result = _delete_row_event(layout, logger, sheet, calendar, row, event_id)
        else:
            result = _upsert_row_event(layout, logger, sheet, calendar, row, event_id, title)
    except CalendarSyncError as e:
        logger.error(f"Failed to reconcile row {row}: {e}")
        result = RowResult(row, RowOutcome.FAILED, f"Error: {e}")
    finally:
        sheet.write_cell(row, cols.upload, False)

    sheet.write_cell(row, cols.status, result.message)
    return result


def reconcile_rows(
    layout: SheetLayout,
    stats: SyncStats,
    logger,
    sheet: SheetStore,
    calendar: CalendarStore,
    rows: Iterable[int],
) -> list[RowResult]:
    """Reconcile each row independently, in increasing row order."""
    results = []
    for row in sorted(set(rows)):
        result = reconcile_row(layout, logger, sheet, calendar, row)
        stats.record(result)
        results.append(result)
    return results
