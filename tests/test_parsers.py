"""
Unit tests for the cell-level value parsers.
"""

from datetime import date
from datetime import datetime
from datetime import time

import pytest

from sheet_calendar_sync.parsers import ISO_FIRST
from sheet_calendar_sync.parsers import InvalidTimeError
from sheet_calendar_sync.parsers import compose
from sheet_calendar_sync.parsers import format_date_only
from sheet_calendar_sync.parsers import format_time_only
from sheet_calendar_sync.parsers import parse_date
from sheet_calendar_sync.parsers import parse_duration
from sheet_calendar_sync.parsers import parse_time


class TestParseDate:
    def test_native_date_passes_through(self):
        assert parse_date(date(2024, 1, 10)) == date(2024, 1, 10)

    def test_native_datetime_drops_time(self):
        assert parse_date(datetime(2024, 1, 10, 17, 45)) == date(2024, 1, 10)

    @pytest.mark.parametrize("text", ["10/01/2024", "10-1-2024", "10.01.2024", " 10/1/2024 "])
    def test_day_first_text(self, text):
        """Manual entry is read day-first by default."""
        assert parse_date(text) == date(2024, 1, 10)

    def test_iso_text(self):
        assert parse_date("2024-01-10") == date(2024, 1, 10)

    def test_impossible_day_first_falls_back_to_month_first(self):
        """12/31/2024 has no 31st month, so the general parser reads it M/D/Y."""
        assert parse_date("12/31/2024") == date(2024, 12, 31)

    def test_iso_first_order_prefers_month_first(self):
        """With iso-first precedence the general parser wins on ambiguous text."""
        assert parse_date("02/03/2024", ISO_FIRST) == date(2024, 2, 3)
        assert parse_date("02/03/2024") == date(2024, 3, 2)

    def test_month_name_text(self):
        assert parse_date("10 January 2024") == date(2024, 1, 10)
        assert parse_date("Jan 10, 2024") == date(2024, 1, 10)

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date", "31/02/2024", 45300, True])
    def test_unparseable_returns_none(self, raw):
        assert parse_date(raw) is None


class TestParseTime:
    def test_native_time_drops_seconds(self):
        assert parse_time(time(9, 30, 45)) == time(9, 30)

    def test_native_datetime(self):
        assert parse_time(datetime(1899, 12, 30, 14, 5)) == time(14, 5)

    def test_day_fraction(self):
        assert parse_time(0.5) == time(12, 0)
        # 13:00 is not exactly representable as a fraction of a day
        assert parse_time(13 / 24) == time(13, 0)

    def test_day_fraction_is_floored_not_rounded(self):
        """23:59:40 stays on the same minute instead of wrapping to midnight."""
        assert parse_time((23 * 3600 + 59 * 60 + 40) / 86400) == time(23, 59)
        assert parse_time((9 * 3600 + 30 * 60 + 50) / 86400) == time(9, 30)

    def test_date_serial_with_fraction_keeps_time_part(self):
        assert parse_time(45300.75) == time(18, 0)

    @pytest.mark.parametrize(
        "text, expected",
        [("9:30", time(9, 30)), ("09:30", time(9, 30)), ("23:59:59", time(23, 59)), ("0:00", time(0, 0))],
    )
    def test_text(self, text, expected):
        assert parse_time(text) == expected

    def test_display_text_used_when_raw_is_empty(self):
        assert parse_time(None, "08:15") == time(8, 15)

    def test_empty_is_none(self):
        assert parse_time(None) is None
        assert parse_time("  ") is None

    @pytest.mark.parametrize("raw", ["24:00", "12:60", "noon", "9.30", -0.25, date(2024, 1, 1)])
    def test_invalid_raises(self, raw):
        with pytest.raises(InvalidTimeError, match="invalid time"):
            parse_time(raw)


class TestParseDuration:
    @pytest.mark.parametrize("raw, expected", [(1, 1.0), ("1.5", 1.5), (0.25, 0.25), (" 2 ", 2.0)])
    def test_valid(self, raw, expected):
        assert parse_duration(raw) == expected

    @pytest.mark.parametrize("raw", [0, "0", -1, "abc", None, "", float("inf"), float("nan"), True])
    def test_invalid(self, raw):
        with pytest.raises(ValueError, match="invalid duration"):
            parse_duration(raw)


def test_compose_is_local_wall_clock():
    start = compose(date(2024, 3, 31), time(2, 30))
    assert start == datetime(2024, 3, 31, 2, 30)
    assert start.tzinfo is None


def test_formatters():
    instant = datetime(2024, 1, 5, 7, 3)
    assert format_date_only(instant) == "2024-01-05"
    assert format_time_only(instant) == "07:03"
