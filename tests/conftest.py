"""
Shared pytest fixtures and event helpers.
"""

import logging
from datetime import datetime
from datetime import timedelta

import pytest

from sheet_calendar_sync.layout import load_layout
from sheet_calendar_sync.models import CalendarEvent
from sheet_calendar_sync.models import SyncStats
from tests.fake_client import FakeCalendarStore
from tests.fake_client import FakeSheetStore

# Default fixed layout: controls in B1..B3, headers on row 4, data from row 5,
# columns A..F = id, title, date, time, duration, upload, status in G.
FIRST_DATA_ROW = 5


def make_event(
    event_id: str,
    title: str = "Test Event",
    start: datetime = datetime(2024, 1, 10, 9, 30),
    hours: float = 1.0,
) -> CalendarEvent:
    """Return a CalendarEvent lasting ``hours`` from ``start``."""
    return CalendarEvent(id=event_id, title=title, start=start, end=start + timedelta(hours=hours))


@pytest.fixture
def layout():
    return load_layout({})


@pytest.fixture
def sheet():
    return FakeSheetStore()


@pytest.fixture
def calendar():
    return FakeCalendarStore()


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")


@pytest.fixture
def sync_stats():
    return SyncStats()
