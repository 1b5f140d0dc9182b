"""Booking extension flow: pick a new end time, check seats, pay, confirm"""

import json
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException

from ...auth import AuthUser
from ...backend_client import BackendClient, BackendError
from ...config import DEFAULT_LOCATION
from ...timezone_utils import parse_utc, to_iso_z
from ..bookings.service import BookingService
from ..payments.fees import FeeSettings, PaymentMethod, format_currency, price_breakdown
from ..payments.hitpay_service import HitPayService, frontend_url, payment_status_message
from ..pricing.service import PricingService
from . import calculator
from .schemas import ExtensionConfirmRequest, ExtensionSubmitRequest
from .seat_checker import SeatAvailabilityChecker, SeatCheckResult

logger = logging.getLogger(__name__)

ALREADY_CONFIRMED_MARKERS = ("already confirmed", "duplicate", "already exists")


def is_already_confirmed_error(message: str) -> bool:
    message = (message or "").lower()
    return any(marker in message for marker in ALREADY_CONFIRMED_MARKERS)


class ExtensionService:
    def __init__(
        self,
        client: BackendClient,
        bookings: BookingService,
        pricing: PricingService,
        hitpay: HitPayService,
    ):
        self.client = client
        self.bookings = bookings
        self.pricing = pricing
        self.hitpay = hitpay

    async def load(self, booking_id: str, token: str) -> dict:
        """Booking, location pricing and selectable end times for the extension page"""
        booking = await self.bookings.get_booking(booking_id, token)
        pricing = await self.pricing.for_location(booking.get("location") or DEFAULT_LOCATION)
        original_end = parse_utc(booking["endAt"])
        return {
            "booking": booking,
            "pricing": pricing,
            "originalEndAt": to_iso_z(original_end),
            "hourlyRate": calculator.hourly_rate(booking, pricing),
            "endTimeSlots": [to_iso_z(slot) for slot in calculator.end_time_slots(original_end)],
        }

    def seat_checker(self, booking: dict, debounce: Optional[float] = None) -> SeatAvailabilityChecker:
        location = booking.get("location") or DEFAULT_LOCATION

        async def fetch(start: datetime, end: datetime) -> dict:
            return await self.bookings.get_booked_seats(location, start, end)

        if debounce is None:
            return SeatAvailabilityChecker(fetch, booking.get("seatNumbers") or [])
        return SeatAvailabilityChecker(fetch, booking.get("seatNumbers") or [], debounce=debounce)

    async def check_seats(self, booking: dict, new_end: datetime) -> SeatCheckResult:
        """One immediate check, no debounce"""
        checker = self.seat_checker(booking, debounce=0)
        checker.submit(parse_utc(booking["endAt"]), new_end)
        return await checker.wait()

    async def quote(
        self,
        booking: dict,
        user: AuthUser,
        new_end: datetime,
        requested_credit: Decimal,
        method,
        settings: FeeSettings,
    ) -> dict:
        original_end = parse_utc(booking["endAt"])
        credit = await self.available_credit(user, requested_credit)
        pricing = await self.pricing.for_location(booking.get("location") or DEFAULT_LOCATION)
        cost = calculator.extension_cost(booking, pricing, original_end, new_end)
        breakdown = price_breakdown(cost, method, settings, credit=credit)
        return {
            "extensionHours": calculator.extension_hours(original_end, new_end),
            "extensionCost": cost,
            "creditApplied": breakdown.credit_applied,
            "finalCost": breakdown.amount_due,
            "transactionFee": breakdown.fee,
            "totalAmount": breakdown.total,
            "feeLabel": breakdown.fee_label,
            "creditsOnly": breakdown.credits_only,
            "allowedEndTime": calculator.is_allowed_end_time(new_end, original_end),
        }

    async def available_credit(self, user: AuthUser, requested: Decimal) -> Decimal:
        """Requested store credit, capped at the user's balance"""
        if requested <= 0:
            return Decimal("0")
        credits = await self.bookings.user_credits(user)
        return min(requested, credits["totalCredit"])

    async def submit(
        self, booking: dict, user: AuthUser, request: ExtensionSubmitRequest, settings: FeeSettings
    ) -> dict:
        """
        Validate an extension and either confirm it straight away (credits
        cover everything) or open a HitPay session for the remainder.
        """
        original_end = parse_utc(booking["endAt"])
        new_end = parse_utc(request.newEndAt) if request.newEndAt else None
        pax = calculator.booking_pax(booking)

        requires_selection = False
        if new_end is not None and new_end > original_end:
            seat_check = await self.check_seats(booking, new_end)
            requires_selection = seat_check.requires_seat_selection

        pricing = await self.pricing.for_location(booking.get("location") or DEFAULT_LOCATION)
        cost = calculator.extension_cost(booking, pricing, original_end, new_end) if new_end else Decimal("0")

        try:
            hours = calculator.validate_submission(
                original_end, new_end, requires_selection, request.seatNumbers, pax, cost
            )
        except calculator.ExtensionValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        method = PaymentMethod.parse(request.paymentMethod)
        credit = await self.available_credit(user, request.creditAmount)
        breakdown = price_breakdown(cost, method, settings, credit=credit)
        seat_numbers = request.seatNumbers if requires_selection else booking.get("seatNumbers") or []

        extension_data = {
            "newEndAt": to_iso_z(new_end),
            "seatNumbers": seat_numbers,
            "extensionHours": float(hours),
            "extensionCost": float(cost),
            "originalEndAt": to_iso_z(original_end),
            "creditAmount": float(breakdown.credit_applied),
            "paymentMethod": method.api_value,
        }

        if breakdown.credits_only:
            logger.info(f"💳 Extension for booking {booking['id']} fully covered by credits")
            confirmation = await self.confirm(
                booking["id"], str(uuid.uuid4()), extension_data, original_end, user.token
            )
            return {"status": "confirmed", **confirmation}

        redirect_url = frontend_url(
            f"/extend/{booking['id']}",
            {
                "step": 3,
                "extension": "true",
                "bookingId": booking["id"],
                "newEndAt": extension_data["newEndAt"],
                "seatNumbers": json.dumps(seat_numbers),
                "extensionHours": str(hours),
                "extensionCost": format_currency(cost),
                "originalEndAt": extension_data["originalEndAt"],
                "creditAmount": format_currency(breakdown.credit_applied),
                "paymentMethod": method.api_value,
            },
        )
        payment_url = await self.hitpay.create_payment_session(
            amount=breakdown.total,
            method=method,
            email=user.email,
            name=f"{user.firstName} {user.lastName}".strip() or user.email.split("@")[0],
            reference_number=booking.get("bookingRef") or booking["id"],
            redirect_url=redirect_url,
            booking_id=booking["id"],
            token=user.token,
        )
        return {
            "status": "payment_required",
            "paymentUrl": payment_url,
            "extensionData": extension_data,
            "amountDue": breakdown.amount_due,
            "transactionFee": breakdown.fee,
            "totalAmount": breakdown.total,
        }

    async def confirm_after_payment(
        self, booking_id: str, request: ExtensionConfirmRequest, token: str
    ) -> dict:
        """Handle the customer's return from HitPay"""
        message = payment_status_message(request.status)
        if message:
            logger.warning(f"❌ Extension payment for {booking_id} not completed: {request.status}")
            raise HTTPException(status_code=402, detail=message)

        original_end = parse_utc(request.originalEndAt) if request.originalEndAt else None
        extension_data = {
            "newEndAt": to_iso_z(request.newEndAt),
            "seatNumbers": request.seatNumbers,
            "extensionHours": float(request.extensionHours),
            "extensionCost": float(request.extensionCost),
            "originalEndAt": to_iso_z(original_end) if original_end else None,
            "creditAmount": float(request.creditAmount),
            "paymentMethod": request.paymentMethod,
        }
        return {
            "status": "confirmed",
            **await self.confirm(booking_id, request.paymentId, extension_data, original_end, token),
        }

    async def confirm(
        self,
        booking_id: str,
        payment_id: str,
        extension_data: dict,
        original_end: Optional[datetime],
        token: str,
    ) -> dict:
        """
        Confirm an extension with the backend. A repeated confirmation
        (the customer reloading the return page) reports success.
        """
        try:
            result = await self.client.post(
                "/booking/confirm-extension-payment",
                json={"bookingId": booking_id, "paymentId": payment_id, "extensionData": extension_data},
                token=token,
            )
        except BackendError as e:
            if is_already_confirmed_error(e.detail):
                logger.info(f"ℹ️ Extension for booking {booking_id} was already confirmed")
                return {"alreadyConfirmed": True, "booking": e.payload.get("booking")}
            raise

        booking = result.get("booking") or {}
        if result.get("alreadyConfirmed"):
            logger.info(f"ℹ️ Extension for booking {booking_id} was already confirmed")
            return {"alreadyConfirmed": True, "booking": booking}

        if original_end is None and result.get("originalEndTime"):
            original_end = parse_utc(result["originalEndTime"])

        hours = Decimal(str(extension_data.get("extensionHours") or 0))
        if original_end is not None and booking.get("endAt"):
            hours = calculator.extension_hours(original_end, parse_utc(booking["endAt"]))

        used_credit = calculator.credit_used(extension_data.get("creditAmount"), booking, result.get("payment"))
        logger.info(f"✅ Booking {booking_id} extended by {hours:.2f} hours")
        return {
            "alreadyConfirmed": False,
            "booking": booking,
            "extensionHours": hours,
            "creditUsed": used_credit,
        }
