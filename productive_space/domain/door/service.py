"""Door access links issued by the booking backend"""

import logging
from datetime import datetime, timedelta

from fastapi import HTTPException

from ...backend_client import BackendClient
from ...timezone_utils import parse_utc, to_iso_z

logger = logging.getLogger(__name__)

MIN_ADMIN_ACCESS = timedelta(hours=1)


def validate_admin_window(seat_number: str, start: datetime, end: datetime, now: datetime) -> None:
    if not (seat_number or "").strip():
        raise HTTPException(status_code=400, detail="Please select a seat number")

    start, end, now = parse_utc(start), parse_utc(end), parse_utc(now)
    if start < now:
        raise HTTPException(status_code=400, detail="Start time cannot be in the past")
    if end < now:
        raise HTTPException(status_code=400, detail="End time cannot be in the past")
    if end <= start:
        raise HTTPException(status_code=400, detail="End time must be after start time")
    if end - start < MIN_ADMIN_ACCESS:
        raise HTTPException(status_code=400, detail="End time must be at least 1 hour after start time")


class DoorService:
    def __init__(self, client: BackendClient):
        self.client = client

    def _with_full_path(self, data: dict) -> dict:
        """The backend returns accessPath relative to its own base URL"""
        link = dict(data.get("data") or {})
        if link.get("accessPath"):
            link["accessPath"] = f"{self.client.base_url}{link['accessPath']}"
        return {"success": True, "data": link, "message": data.get("message")}

    async def generate_open_link(self, booking_ref: str) -> dict:
        data = await self.client.post("/door/generate-open-link", json={"bookingRef": booking_ref})
        logger.info(f"🚪 Door link generated for booking {booking_ref}")
        return self._with_full_path(data)

    async def admin_generate_open_link(
        self, seat_number: str, start: datetime, end: datetime, now: datetime, token: str
    ) -> dict:
        validate_admin_window(seat_number, start, end, now)
        data = await self.client.post(
            "/door/admin-generate-open-link",
            json={"seatNumber": seat_number.strip(), "startTime": to_iso_z(start), "endTime": to_iso_z(end)},
            token=token,
        )
        logger.info(f"🚪 Admin door link generated for seat {seat_number}")
        return self._with_full_path(data)

    async def send_access_link(self, booking_ref: str, email: str, token: str) -> dict:
        data = await self.client.post(
            "/door/send-access-link",
            json={"bookingRef": booking_ref, "email": email},
            token=token,
        )
        logger.info(f"📧 Door access link sent for booking {booking_ref}")
        return {"success": True, "message": data.get("message") or "Access link sent"}
