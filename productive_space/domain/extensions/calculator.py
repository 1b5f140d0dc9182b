"""
Extension pricing and validation.

An extension adds time after a booking's current end. The cost is the
booking's combined hourly rate (members x member rate + tutors x tutor
rate + students x student rate) times the added hours.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from ...shared.validators import to_decimal
from ...timezone_utils import parse_utc, to_singapore_time

SLOT_MINUTES = 15
MIN_EXTENSION_HOURS = Decimal("1")
ZERO = Decimal("0")


class ExtensionValidationError(ValueError):
    """Raised with a message that can be shown to the user as-is"""


def extension_hours(original_end: datetime, new_end: datetime) -> Decimal:
    """Hours added by moving the end time; never negative"""
    seconds = (parse_utc(new_end) - parse_utc(original_end)).total_seconds()
    if seconds <= 0:
        return ZERO
    return Decimal(str(seconds)) / Decimal("3600")


def hourly_rate(booking: dict, pricing: dict) -> Decimal:
    """
    Combined hourly rate for everyone on the booking.

    `pricing` is the per-location table: {"member": {"oneHourRate": 4.0}, ...}
    or a flat {"member": 4.0, ...}.
    """
    total = ZERO
    for role, count_key in (("member", "members"), ("tutor", "tutors"), ("student", "students")):
        rate = pricing.get(role)
        if isinstance(rate, dict):
            rate = rate.get("oneHourRate")
        total += to_decimal(booking.get(count_key)) * to_decimal(rate)
    return total


def booking_pax(booking: dict) -> int:
    """Seats the booking holds; older bookings without pax count their seat numbers"""
    return int(booking.get("pax") or len(booking.get("seatNumbers") or []))


def extension_cost(booking: dict, pricing: dict, original_end: datetime, new_end: datetime) -> Decimal:
    hours = extension_hours(original_end, new_end)
    if hours <= ZERO:
        return ZERO
    return hours * hourly_rate(booking, pricing)


def cost_after_credit(cost: Decimal, credit: Decimal) -> Decimal:
    return max(ZERO, to_decimal(cost) - to_decimal(credit))


def is_allowed_end_time(candidate: datetime, original_end: datetime) -> bool:
    """End times sit on 15-minute slots and must be later than the current end"""
    candidate_sg = to_singapore_time(candidate)
    if candidate_sg.minute % SLOT_MINUTES or candidate_sg.second or candidate_sg.microsecond:
        return False
    return parse_utc(candidate) > parse_utc(original_end)


def end_time_slots(original_end: datetime, hours_ahead: int = 12) -> list[datetime]:
    """Selectable end times: the next 15-minute slots after the current end"""
    start = to_singapore_time(original_end)
    floored = start.replace(minute=start.minute - start.minute % SLOT_MINUTES, second=0, microsecond=0)
    slot = floored + timedelta(minutes=SLOT_MINUTES)
    last = start + timedelta(hours=hours_ahead)
    slots = []
    while slot <= last:
        slots.append(parse_utc(slot))
        slot += timedelta(minutes=SLOT_MINUTES)
    return slots


def can_submit(
    original_end: Optional[datetime],
    new_end: Optional[datetime],
    requires_seat_selection: bool,
    selected_seats: list[str],
    pax: int,
) -> bool:
    """Submit is enabled only for a later end time and, if seats must be re-picked, exactly pax seats"""
    if original_end is None or new_end is None:
        return False
    if parse_utc(new_end) <= parse_utc(original_end):
        return False
    if requires_seat_selection and len(selected_seats) != pax:
        return False
    return True


def validate_submission(
    original_end: datetime,
    new_end: Optional[datetime],
    requires_seat_selection: bool,
    selected_seats: list[str],
    pax: int,
    cost: Decimal,
) -> Decimal:
    """Check an extension before payment; returns the extension hours"""
    if new_end is None:
        raise ExtensionValidationError("Please select new end time")
    if parse_utc(new_end) <= parse_utc(original_end):
        raise ExtensionValidationError("New end time must be after current end time")

    hours = extension_hours(original_end, new_end)
    if hours < MIN_EXTENSION_HOURS:
        raise ExtensionValidationError("Extension requires at least 1 hour.")

    if requires_seat_selection and len(selected_seats) != pax:
        plural = "s" if pax > 1 else ""
        raise ExtensionValidationError(f"Please select {pax} seat{plural} for the extended time")

    if to_decimal(cost) <= ZERO:
        raise ExtensionValidationError("Extension cost must be greater than 0")

    return hours


def credit_used(url_credit, booking: dict, payment: Optional[dict]) -> Decimal:
    """
    Credit spent on a confirmed extension. The amount carried through the
    payment redirect wins; otherwise it is derived from the latest
    extension amount and what was actually paid.
    """
    credit = to_decimal(url_credit)
    if credit > ZERO:
        return credit

    amounts = booking.get("extensionamounts") or []
    if not amounts or not payment:
        return ZERO

    latest_cost = to_decimal(amounts[-1])
    if payment.get("paymentMethod") == "Credits":
        return latest_cost

    paid = to_decimal(payment.get("totalAmount") or payment.get("cost"))
    if latest_cost > paid:
        return latest_cost - paid
    return ZERO
