"""Promo code lookups and application against the booking backend"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException

from ...backend_client import BackendClient, BackendError
from ...shared.validators import to_decimal
from . import rules

logger = logging.getLogger(__name__)

DELETE_IN_USE_MESSAGE = "Cannot delete promo code that is currently in use. Please deactivate it first."
DELETE_REFERENCED_MESSAGE = "Cannot delete promo code due to existing references. Please deactivate it first."


class PromoCodeService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def apply(
        self,
        code: str,
        user_id: str,
        amount: Decimal,
        booking_id: Optional[str] = None,
        package_id: Optional[str] = None,
        token: Optional[str] = None,
    ) -> dict:
        """Authoritative discount for a code; the backend records the usage"""
        payload = {"promoCode": code, "userId": user_id, "bookingAmount": float(amount)}
        if booking_id:
            payload["bookingId"] = booking_id
        if package_id:
            payload["packageId"] = package_id

        try:
            data = await self.client.post("/promocode/apply", json=payload, token=token)
        except BackendError as e:
            logger.info(f"🏷️ Promo {code} rejected for user {user_id}: {e.detail}")
            raise

        result = data.get("data") or {}
        discount = to_decimal(result.get("discountAmount"))
        final_amount = to_decimal(result.get("finalAmount"), str(amount - discount))
        logger.info(f"✅ Promo {code} applied for user {user_id}: -{discount}")
        return {
            "promoCode": rules.normalize_promo(result.get("promoCode") or {}),
            "discountAmount": discount,
            "finalAmount": final_amount,
            "message": data.get("message") or "Promo code applied",
        }

    async def available(self, user_id: str, now: datetime, token: Optional[str] = None) -> list[dict]:
        data = await self.client.get(f"/promocode/user/{user_id}/available", token=token)
        promos = data.get("availablePromos") or data.get("data") or []
        return [
            {**rules.normalize_promo(promo), "displayDiscount": rules.format_discount(promo)}
            for promo in promos
            if rules.is_currently_available(promo, now)
        ]

    async def used(self, user_id: str, token: Optional[str] = None) -> list[dict]:
        data = await self.client.get(f"/promocode/user/{user_id}/used", token=token)
        return data.get("usedPromos") or data.get("data") or []

    # ========================================================================
    # ADMIN
    # ========================================================================

    async def list_all(self, token: str) -> list[dict]:
        data = await self.client.get("/promocode/admin/all", token=token)
        return [rules.normalize_promo(promo) for promo in data.get("promoCodes") or data.get("data") or []]

    async def create(self, promo: dict, token: str) -> dict:
        return await self.client.post("/promocode/admin/create", json=promo, token=token)

    async def update(self, promo_id: str, changes: dict, token: str) -> dict:
        return await self.client.put(f"/promocode/admin/{promo_id}", json=changes, token=token)

    async def delete(self, promo_id: str, token: str) -> dict:
        try:
            return await self.client.delete(f"/promocode/admin/{promo_id}", token=token)
        except BackendError as e:
            if "usage" in e.detail:
                raise HTTPException(status_code=e.status_code, detail=DELETE_IN_USE_MESSAGE) from e
            if "constraint" in e.detail:
                raise HTTPException(status_code=e.status_code, detail=DELETE_REFERENCED_MESSAGE) from e
            raise
