from datetime import date, datetime, timezone

from productive_space import timezone_utils as tz

from .utils import NOW


def test_parse_utc_accepts_backend_formats():
    expected = datetime(2025, 1, 31, 8, 0, tzinfo=timezone.utc)
    assert tz.parse_utc("2025-01-31T08:00:00.000Z") == expected
    assert tz.parse_utc("2025-01-31 08:00:00") == expected
    assert tz.parse_utc("2025-01-31T16:00:00+08:00") == expected


def test_singapore_round_trip():
    assert tz.to_utc("2025-01-31T16:00:00") == datetime(2025, 1, 31, 8, 0, tzinfo=timezone.utc)
    assert tz.to_singapore_time(NOW).hour == 12


def test_backend_timestamp_formats():
    moment = datetime(2025, 1, 31, 8, 0, 0, 123000, tzinfo=timezone.utc)
    assert tz.to_backend_timestamp(moment) == "2025-01-31 08:00:00.123"
    assert tz.to_iso_z(moment) == "2025-01-31T08:00:00.123Z"


def test_date_range_formatting():
    assert tz.format_booking_date_range("2025-01-31T08:00:00Z", "2025-01-31T10:00:00Z") == (
        "Jan 31, 2025 04:00 PM - 06:00 PM"
    )
    assert tz.format_booking_date_range("2025-01-31T15:00:00Z", "2025-01-31T17:00:00Z") == (
        "Jan 31, 2025 11:00 PM - Feb 1, 2025 01:00 AM"
    )


def test_duration_rounds_up():
    assert tz.duration_hours_singapore("2025-01-31T08:00:00Z", "2025-01-31T09:10:00Z") == 2
    assert tz.duration_hours_singapore("2025-01-31T08:00:00Z", "2025-01-31T08:00:00Z") == 1


def test_booking_window():
    assert tz.booking_window(NOW) == (date(2025, 3, 10), date(2025, 4, 9))
