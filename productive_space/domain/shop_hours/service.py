"""Operating hours and closure dates per outlet"""

import asyncio
import logging
from datetime import datetime

from ...backend_client import BackendClient
from ...timezone_utils import to_iso_z

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def day_name(day_of_week: int) -> str:
    """0=Sunday ... 6=Saturday"""
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return "Unknown"


def format_time(time: str) -> str:
    """'13:30:00' -> '1:30 PM'"""
    if not time:
        return ""
    hours, minutes = time.split(":")[:2]
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:{minutes} {ampm}"


class ShopHoursService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def operating_hours(self, location: str, token: str = None) -> list[dict]:
        data = await self.client.get(f"/shop-hours/operating/{location}", token=token)
        return data.get("data") or []

    async def update_operating_hours(
        self, hours_id: str, open_time: str, close_time: str, is_active: bool, token: str
    ) -> dict:
        data = await self.client.put(
            f"/shop-hours/operating/{hours_id}",
            json={"openTime": open_time, "closeTime": close_time, "isActive": is_active},
            token=token,
        )
        logger.info(f"🕒 Operating hours {hours_id} set to {open_time}-{close_time} (active={is_active})")
        return data.get("data") or {}

    async def closures(self, location: str, token: str = None) -> list[dict]:
        data = await self.client.get(f"/shop-hours/closures/{location}", token=token)
        return data.get("data") or []

    async def create_closure(
        self, location: str, start: datetime, end: datetime, reason: str, token: str
    ) -> dict:
        data = await self.client.post(
            "/shop-hours/closures",
            json={
                "location": location,
                "startDate": to_iso_z(start),
                "endDate": to_iso_z(end),
                "reason": reason,
            },
            token=token,
        )
        logger.info(f"🚧 Closure added for {location}: {reason}")
        return data.get("data") or {}

    async def update_closure(
        self, closure_id: str, start: datetime, end: datetime, reason: str, is_active: bool, token: str
    ) -> dict:
        data = await self.client.put(
            f"/shop-hours/closures/{closure_id}",
            json={
                "startDate": to_iso_z(start),
                "endDate": to_iso_z(end),
                "reason": reason,
                "isActive": is_active,
            },
            token=token,
        )
        return data.get("data") or {}

    async def delete_closure(self, closure_id: str, token: str) -> None:
        await self.client.delete(f"/shop-hours/closures/{closure_id}", token=token)
        logger.info(f"🗑️ Closure {closure_id} deleted")

    async def check_availability(self, location: str, start: datetime, end: datetime, token: str = None) -> dict:
        data = await self.client.post(
            "/shop-hours/check-availability",
            json={"location": location, "startAt": to_iso_z(start), "endAt": to_iso_z(end)},
            token=token,
        )
        return {"available": bool(data.get("available")), "reason": data.get("reason")}

    async def schedule(self, location: str, token: str = None) -> dict:
        """Weekly hours with display labels plus closures, fetched together"""
        hours, closures = await asyncio.gather(
            self.operating_hours(location, token),
            self.closures(location, token),
        )
        return {
            "location": location,
            "operatingHours": [
                {
                    **row,
                    "dayName": day_name(int(row.get("dayOfWeek", -1))),
                    "openLabel": format_time(row.get("openTime") or ""),
                    "closeLabel": format_time(row.get("closeTime") or ""),
                }
                for row in sorted(hours, key=lambda r: int(r.get("dayOfWeek", 0)))
            ],
            "closures": closures,
        }
