"""Singapore time helpers. The backend stores every timestamp in UTC."""

import math
from datetime import date, datetime, timedelta, timezone
from typing import Union

SINGAPORE_TZ = timezone(timedelta(hours=8), name="SGT")
MAX_DAYS_AHEAD = 30

DateLike = Union[str, datetime]


def parse_utc(value: DateLike) -> datetime:
    """
    Parse a backend timestamp into an aware UTC datetime.

    Accepts ISO strings with "T" or " " separators, with or without a "Z"
    suffix. Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_singapore_time(value: DateLike) -> datetime:
    return parse_utc(value).astimezone(SINGAPORE_TZ)


def to_utc(value: DateLike) -> datetime:
    """Convert a Singapore wall-clock time (naive or aware) to UTC"""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if value.tzinfo is None:
        value = value.replace(tzinfo=SINGAPORE_TZ)
    return value.astimezone(timezone.utc)


def to_backend_timestamp(value: datetime) -> str:
    """Format as the backend's seat query expects: '2025-01-31 08:00:00.000'"""
    dt = parse_utc(value)
    return dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def to_iso_z(value: datetime) -> str:
    dt = parse_utc(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def format_time(dt: datetime) -> str:
    return dt.strftime("%I:%M %p")


def format_singapore_date(value: DateLike) -> str:
    """e.g. 'Jan 31, 2025, 04:00 PM'"""
    sg = to_singapore_time(value)
    return f"{sg.strftime('%b')} {sg.day}, {sg.year}, {format_time(sg)}"


def format_booking_date_range(start: DateLike, end: DateLike) -> str:
    start_sg = to_singapore_time(start)
    end_sg = to_singapore_time(end)
    start_date = f"{start_sg.strftime('%b')} {start_sg.day}, {start_sg.year}"

    if start_sg.date() == end_sg.date():
        return f"{start_date} {format_time(start_sg)} - {format_time(end_sg)}"

    end_date = f"{end_sg.strftime('%b')} {end_sg.day}, {end_sg.year}"
    return f"{start_date} {format_time(start_sg)} - {end_date} {format_time(end_sg)}"


def duration_hours_singapore(start: DateLike, end: DateLike) -> int:
    """Whole hours between two timestamps, rounded up, never below 1"""
    seconds = (parse_utc(end) - parse_utc(start)).total_seconds()
    return max(1, math.ceil(seconds / 3600))


def is_past(value: DateLike, now: datetime) -> bool:
    return parse_utc(value) < parse_utc(now)


def booking_window(now: datetime) -> tuple[date, date]:
    """First and last Singapore dates that can be booked"""
    today = to_singapore_time(now).date()
    return today, today + timedelta(days=MAX_DAYS_AHEAD)


def utc_now() -> datetime:
    """Current time; routers take it as a dependency so tests can pin it"""
    return datetime.now(timezone.utc)
