"""
Tests for the openpyxl-backed WorkbookSheetStore, using real .xlsx files in tmp_path.
"""

from datetime import date
from datetime import datetime
from datetime import time

import pytest
from openpyxl import Workbook
from openpyxl import load_workbook

from sheet_calendar_sync.layout import load_layout
from sheet_calendar_sync.models import ConfigurationError
from sheet_calendar_sync.models import StoreError
from sheet_calendar_sync.sync import SheetCalendarSync
from sheet_calendar_sync.workbook import WorkbookSheetStore
from tests.conftest import make_event
from tests.fake_client import FakeCalendarStore


@pytest.fixture
def workbook_path(tmp_path):
    path = tmp_path / "events.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "Events"
    ws["A1"], ws["B1"] = "Download", False
    ws["A2"], ws["B2"] = "From", datetime(2024, 1, 10)
    ws["A3"], ws["B3"] = "To", datetime(2024, 1, 12)
    for col, header in enumerate(["ID", "Title", "Date", "Time", "Duration", "Upload", "Status"], 1):
        ws.cell(row=4, column=col, value=header)
    wb.create_sheet("Notes")
    wb.save(path)
    return path


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        WorkbookSheetStore(tmp_path / "nope.xlsx").open()


def test_missing_sheet(workbook_path):
    with pytest.raises(ConfigurationError, match="'Agenda'"):
        WorkbookSheetStore(workbook_path, "Agenda").open()


def test_named_and_active_sheet(workbook_path):
    assert WorkbookSheetStore(workbook_path, "Notes").open().title == "Notes"
    assert WorkbookSheetStore(workbook_path).open().title == "Events"


def test_cells_and_header_values(workbook_path):
    store = WorkbookSheetStore(workbook_path).open()
    assert store.read_cell(1, 2) is False
    assert store.header_values(4)[:3] == ["ID", "Title", "Date"]
    assert store.display_text(4, 2) == "Title"
    assert store.display_text(9, 9) == ""
    assert store.last_data_row() == 4


def test_display_text_of_time(workbook_path):
    store = WorkbookSheetStore(workbook_path).open()
    store.write_cell(5, 4, time(7, 45))
    assert store.display_text(5, 4) == "07:45"


def test_write_rows_length_mismatch(workbook_path):
    store = WorkbookSheetStore(workbook_path).open()
    with pytest.raises(StoreError, match="Row 5"):
        store.write_rows(5, (1, 2, 3), [["a", "b"]])


def test_clear_and_formats_saved(workbook_path):
    with WorkbookSheetStore(workbook_path) as store:
        store.write_rows(5, (1, 2, 3), [["e1", "A", date(2024, 1, 10)], ["e2", "B", date(2024, 1, 11)]])
        store.set_number_format(range(5, 7), 3, "yyyy-mm-dd")
        store.clear_cells(range(6, 7), (1, 2, 3))

    ws = load_workbook(workbook_path)["Events"]
    assert ws["A5"].value == "e1"
    assert ws["C5"].number_format == "yyyy-mm-dd"
    assert ws["A6"].value is None


def test_saved_even_when_block_raises(workbook_path):
    with pytest.raises(RuntimeError):
        with WorkbookSheetStore(workbook_path) as store:
            store.write_cell(5, 2, "kept")
            raise RuntimeError("boom")

    assert load_workbook(workbook_path)["Events"]["B5"].value == "kept"


def test_download_then_upload_through_workbook(workbook_path):
    """End to end over a real file: download a period, then resubmit a row."""
    calendar = FakeCalendarStore([make_event("e1", "Planning", datetime(2024, 1, 11, 14, 0), 1.5)])
    layout = load_layout({"sheet_name": "Events", "header_row": "4"}, header_reader=lambda row: [
        "ID", "Title", "Date", "Time", "Duration", "Upload", "Status"
    ])

    with WorkbookSheetStore(workbook_path, "Events") as store:
        SheetCalendarSync(layout, store, calendar).download()

    ws = load_workbook(workbook_path)["Events"]
    assert ws["A5"].value == "e1"
    assert ws["B5"].value == "Planning"
    assert ws["E5"].value == 1.5
    assert ws["F5"].value is False
    assert ws["B1"].value is False

    with WorkbookSheetStore(workbook_path, "Events") as store:
        store.write_cell(5, 2, "Planning (moved)")
        store.write_cell(5, 6, True)
        results = SheetCalendarSync(layout, store, calendar).upload_rows([5])

    assert results[0].event_id == "e1"
    assert calendar.get_event_by_id("e1").title == "Planning (moved)"
    assert calendar.get_event_by_id("e1").start == datetime(2024, 1, 11, 14, 0)
    assert load_workbook(workbook_path)["Events"]["G5"].value == "Updated event."
