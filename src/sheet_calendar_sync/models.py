"""
Pure data models — no EDS or openpyxl imports.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from datetime import time
from enum import Enum
from pathlib import Path

DEFAULT_CONFIG = Path.home() / ".config/sheet-calendar-sync.conf"
CONFIG_SECTION = "sheet-calendar-sync"


class CalendarSyncError(Exception):
    """Base exception for sheet/calendar sync errors."""

    pass


class ConfigurationError(CalendarSyncError):
    """A required location, header or period bound is missing or invalid.

    Fatal to the whole invocation; always raised before the sheet is mutated.
    """

    pass


class StoreError(CalendarSyncError):
    """A calendar or sheet backend call failed."""

    pass


class RowValidationError(CalendarSyncError):
    """A single row could not be turned into an event."""

    def __init__(self, row: int, field: str, message: str):
        self.row = row
        self.field = field
        super().__init__(f"Row {row}: {message}")


@dataclass(frozen=True)
class CalendarEvent:
    """One event as seen through the calendar store."""

    id: str
    title: str
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(
                f"Event {self.id!r} ends ({self.end}) before it starts ({self.start})"
            )

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


@dataclass(frozen=True)
class RowFields:
    """The data cells of one output row."""

    id: str
    title: str
    date: date
    time: time
    duration_hours: float


class RowOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    SKIPPED_EMPTY = "skipped-empty"
    SKIPPED_STALE_ID = "skipped-stale-id"
    FAILED = "failed"


@dataclass(frozen=True)
class RowResult:
    """Outcome of reconciling one sheet row against the calendar."""

    row: int
    outcome: RowOutcome
    message: str
    event_id: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is not RowOutcome.FAILED


@dataclass
class SyncStats:
    """Statistics for one invocation."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: int = 0
    downloaded: int = 0

    def record(self, result: RowResult) -> None:
        if result.outcome is RowOutcome.CREATED:
            self.created += 1
        elif result.outcome is RowOutcome.UPDATED:
            self.updated += 1
        elif result.outcome is RowOutcome.DELETED:
            self.deleted += 1
        elif result.outcome is RowOutcome.FAILED:
            self.errors += 1
        else:
            self.skipped += 1


@dataclass
class SyncConfig:
    """Configuration for one CLI invocation."""

    calendar_id: str
    workbook_path: Path
    sheet_options: dict[str, str] = field(default_factory=dict)
    verbose: bool = False
    yes: bool = False  # Auto-confirm without prompting
