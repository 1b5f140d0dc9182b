"""
Dashboard tab classification.

Every booking lands in exactly one tab. Cancelled bookings (cancelled by
someone, or with a refund requested or approved) win over the time-based
tabs; the rest are split on startAt/endAt against `now`.
"""

from datetime import datetime, timedelta

from ...timezone_utils import parse_utc

UPCOMING = "upcoming"
ONGOING = "ongoing"
PAST = "past"
CANCELLED = "cancelled"
TABS = (UPCOMING, ONGOING, PAST, CANCELLED)

CANCELLED_REFUND_STATUSES = {"REQUESTED", "APPROVED"}
EDIT_CUTOFF = timedelta(hours=5)


def is_cancelled(booking: dict) -> bool:
    if booking.get("cancelledBy"):
        return True
    return str(booking.get("refundstatus") or "").upper() in CANCELLED_REFUND_STATUSES


def classify(booking: dict, now: datetime) -> str:
    if is_cancelled(booking):
        return CANCELLED

    now = parse_utc(now)
    start = parse_utc(booking["startAt"])
    end = parse_utc(booking["endAt"])

    if booking.get("isCompleted") or end < now:
        return PAST
    if start > now:
        return UPCOMING
    return ONGOING


def partition(bookings: list[dict], now: datetime) -> dict[str, list[dict]]:
    tabs = {tab: [] for tab in TABS}
    for booking in bookings:
        tabs[classify(booking, now)].append(booking)
    return tabs


def can_edit_booking(booking: dict, now: datetime) -> bool:
    """Bookings can be changed up to 5 hours before they start"""
    if is_cancelled(booking):
        return False
    return parse_utc(booking["startAt"]) - parse_utc(now) >= EDIT_CUTOFF


def duration_hours(booking: dict) -> float:
    delta = parse_utc(booking["endAt"]) - parse_utc(booking["startAt"])
    return round(delta.total_seconds() / 3600, 2)
