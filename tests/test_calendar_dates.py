"""Calendar date parsing in the school's time zone"""

from datetime import date, datetime, timezone

import pytest

from services.calendar_dates import (
    add_days,
    format_calendar_date,
    normalize_date_fields,
    parse_calendar_date,
    today_in,
)


class TestParseCalendarDate:

    def test_date_only_string(self):
        assert parse_calendar_date("2025-01-01") == date(2025, 1, 1)

    def test_utc_timestamp_lands_on_local_date(self):
        assert parse_calendar_date("2025-01-01T23:30:00Z", "Pacific/Auckland") == date(2025, 1, 2)

    def test_utc_timestamp_in_utc(self):
        assert parse_calendar_date("2025-01-01T23:30:00Z") == date(2025, 1, 1)

    def test_offset_timestamp(self):
        assert parse_calendar_date("2025-03-10T01:00:00+13:00", "UTC") == date(2025, 3, 9)

    def test_naive_datetime_treated_as_utc(self):
        assert parse_calendar_date(datetime(2025, 1, 1, 12, 0), "Pacific/Auckland") == date(2025, 1, 2)

    def test_aware_datetime(self):
        value = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert parse_calendar_date(value, "America/New_York") == date(2025, 1, 1)

    def test_date_passes_through(self):
        assert parse_calendar_date(date(2025, 2, 3)) == date(2025, 2, 3)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_values(self, value):
        assert parse_calendar_date(value) is None

    @pytest.mark.parametrize("value", ["2025-13-01", "01/02/2025", "not a date", "2025-01-01Tnope"])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            parse_calendar_date(value)

    def test_unknown_time_zone_raises(self):
        with pytest.raises(ValueError):
            parse_calendar_date("2025-01-01T00:00:00Z", "Mars/Olympus_Mons")


class TestHelpers:

    def test_normalize_rewrites_only_present_fields(self):
        data = {"visit_date": "2025-01-01T23:30:00Z", "notes": "oil change"}
        normalize_date_fields(data, ("visit_date", "next_due_date"), "Pacific/Auckland")
        assert data == {"visit_date": "2025-01-02", "notes": "oil change"}

    def test_normalize_clears_empty(self):
        data = {"current_due_date": ""}
        normalize_date_fields(data, ("current_due_date",), "UTC")
        assert data["current_due_date"] is None

    def test_format(self):
        assert format_calendar_date(date(2025, 4, 5)) == "2025-04-05"
        assert format_calendar_date(None) is None

    def test_today_in_zone(self):
        now = datetime(2025, 1, 1, 23, 30, tzinfo=timezone.utc)
        assert today_in("Pacific/Auckland", now=now) == date(2025, 1, 2)
        assert today_in("UTC", now=now) == date(2025, 1, 1)

    def test_add_days_floors(self):
        assert add_days(date(2025, 1, 1), 36.5) == date(2025, 2, 6)
        assert add_days(date(2025, 1, 1), 1) == date(2025, 1, 2)
