"""
Cell-level value parsers: dates, times of day and durations.

Cells may hold native values (what the spreadsheet backend hands back for
formatted date/time cells) or free text typed by a user.  Everything here
works in local wall-clock terms; no timezone is ever attached.
"""

import math
import re
from datetime import date
from datetime import datetime
from datetime import time
from datetime import timedelta

DAY_FIRST = "day-first"
ISO_FIRST = "iso-first"
DATE_ORDERS = (DAY_FIRST, ISO_FIRST)

# Manual entry in day-first locales: 10/01/2024, 10-1-2024, 10.01.2024
_DAY_FIRST_RE = re.compile(r"^\s*(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})\s*$")

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")

# Fallback formats tried after ISO parsing, in order.
_GENERAL_DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
)


class InvalidTimeError(ValueError):
    """Raised when a non-empty cell cannot be read as a time of day."""

    pass


def _is_blank(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _parse_day_first(text: str) -> date | None:
    m = _DAY_FIRST_RE.match(text)
    if not m:
        return None
    day, month, year = (int(g) for g in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_general(text: str) -> date | None:
    text = text.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _GENERAL_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_date(raw, date_order: str = DAY_FIRST) -> date | None:
    """Return the calendar date held by a cell, or None.

    Unparseable input is not an error here; callers decide whether a
    missing date is fatal.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None

    if date_order == ISO_FIRST:
        return _parse_general(raw) or _parse_day_first(raw)
    return _parse_day_first(raw) or _parse_general(raw)


def _time_from_text(text: str) -> time | None:
    m = _TIME_RE.match(text)
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    seconds = int(m.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return time(hours, minutes)


def parse_time(raw, display_text: str | None = None) -> time | None:
    """Return the time of day held by a cell, truncated to minutes.

    Returns None for an empty cell and raises InvalidTimeError for anything
    non-empty that is not a time.
    """
    if isinstance(raw, datetime):
        return time(raw.hour, raw.minute)
    if isinstance(raw, time):
        return time(raw.hour, raw.minute)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if not math.isfinite(raw) or raw < 0:
            raise InvalidTimeError(f"invalid time {raw!r}")
        # Spreadsheet day fraction; a date serial's integer part is dropped.
        # Floored like native times; the epsilon absorbs float error (13/24).
        total_minutes = min(int((raw % 1) * 24 * 60 + 1e-9), 24 * 60 - 1)
        return time(total_minutes // 60, total_minutes % 60)

    candidates = []
    if isinstance(raw, str) and raw.strip():
        candidates.append(raw)
    if display_text and display_text.strip():
        candidates.append(display_text)
    if not candidates and _is_blank(raw):
        return None

    for text in candidates:
        parsed = _time_from_text(text)
        if parsed is not None:
            return parsed
    raise InvalidTimeError(f"invalid time {raw!r}")


def parse_duration(raw) -> float:
    """Return a positive, finite number of hours or raise ValueError."""
    if isinstance(raw, bool) or _is_blank(raw):
        raise ValueError(f"invalid duration {raw!r}")
    try:
        hours = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"invalid duration {raw!r}") from None
    if not math.isfinite(hours) or hours <= 0:
        raise ValueError(f"invalid duration {raw!r} (must be a positive number of hours)")
    return hours


def compose(day: date, time_of_day: time) -> datetime:
    """Local date + local time = local instant."""
    return datetime.combine(day, time(time_of_day.hour, time_of_day.minute))


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time(0, 0))


def add_hours(instant: datetime, hours: float) -> datetime:
    return instant + timedelta(hours=hours)


def format_date_only(instant: datetime | date) -> str:
    return f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"


def format_time_only(instant: datetime | time) -> str:
    return f"{instant.hour:02d}:{instant.minute:02d}"
