"""Booking dashboard service - bookings, seat lookups, refunds and credits"""

import logging
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException

from ...auth import AuthUser
from ...backend_client import BackendClient
from ...shared.validators import to_decimal
from ...timezone_utils import to_backend_timestamp
from ..payments.fees import FeeSettings, RefundEstimate, estimate_refund
from . import classifier

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def list_user_bookings(self, token: str) -> list[dict]:
        data = await self.client.get("/booking/all", token=token)
        return data.get("bookings") or []

    async def dashboard(self, token: str, now: datetime) -> dict:
        """Bookings split into dashboard tabs, with counts"""
        bookings = await self.list_user_bookings(token)
        tabs = classifier.partition(bookings, now)
        for booking in tabs[classifier.UPCOMING]:
            booking["canEdit"] = classifier.can_edit_booking(booking, now)
        return {
            "tabs": tabs,
            "counts": {tab: len(items) for tab, items in tabs.items()},
            "total": len(bookings),
        }

    async def get_booking(self, booking_id: str, token: str = None) -> dict:
        data = await self.client.get(f"/booking/getById/{booking_id}", token=token)
        booking = data.get("booking")
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    async def get_booked_seats(self, location: str, start_at: datetime, end_at: datetime) -> dict:
        """Seats taken at `location` anywhere in [start_at, end_at)"""
        data = await self.client.post(
            "/booking/getBookedSeats",
            json={
                "location": location,
                "startAt": to_backend_timestamp(start_at),
                "endAt": to_backend_timestamp(end_at),
            },
        )
        return {
            "bookedSeats": data.get("bookedSeats") or [],
            "availableSeats": data.get("availableSeats") or [],
        }

    async def user_stats(self, user_id: str, token: str) -> dict:
        return await self.client.post("/booking/userStats", json={"userId": user_id}, token=token)

    def refund_estimate(self, booking: dict, method, settings: FeeSettings) -> RefundEstimate:
        return estimate_refund(to_decimal(booking.get("totalAmount")), method, settings)

    async def request_refund(self, booking: dict, reason: str, user: AuthUser, now: datetime) -> dict:
        """Ask the backend to refund a booking to store credit"""
        if classifier.is_cancelled(booking):
            raise HTTPException(status_code=400, detail="A refund has already been requested for this booking")
        if classifier.classify(booking, now) != classifier.UPCOMING:
            raise HTTPException(status_code=400, detail="Only upcoming bookings can be refunded")

        logger.info(f"💸 Refund requested for booking {booking['id']} by user {user.id}")
        return await self.client.post(
            "/refund/request",
            json={"bookingid": booking["id"], "reason": reason, "userid": user.id},
            token=user.token,
        )

    async def user_credits(self, user: AuthUser) -> dict:
        data = await self.client.get("/refund/credits", params={"userid": user.id}, token=user.token)
        return {
            "credits": data.get("credits") or [],
            "totalCredit": to_decimal(data.get("totalCredit")),
            "count": data.get("count") or 0,
        }

    async def refund_requests(self, user: AuthUser) -> list[dict]:
        data = await self.client.get("/refund/requests", params={"userid": user.id}, token=user.token)
        return data if isinstance(data, list) else data.get("refunds") or []

    async def credit_usage(self, user: AuthUser) -> list[dict]:
        data = await self.client.get("/refund/credit-usage", params={"userid": user.id}, token=user.token)
        return data if isinstance(data, list) else data.get("usage") or []

    async def calculate_credit_payment(self, amount: Decimal, user: AuthUser) -> dict:
        """How much of `amount` the user's store credit covers"""
        return await self.client.post(
            "/credit/calculate-payment",
            json={"bookingAmount": float(amount), "userid": user.id},
            token=user.token,
        )
