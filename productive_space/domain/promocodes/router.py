"""Promo codes router - customer lookups and admin management"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from ...auth import AuthUser, get_current_user, require_admin
from ...backend_client import BackendClient, get_backend_client
from ...timezone_utils import utc_now
from . import rules
from .schemas import PromoApplyRequest, PromoCodeCreate, PromoCodeUpdate, PromoPreviewRequest
from .service import PromoCodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/promocodes", tags=["Promo Codes"])
admin_router = APIRouter(prefix="/admin/promocodes", tags=["Admin"])


def get_promo_code_service(client: BackendClient = Depends(get_backend_client)) -> PromoCodeService:
    """Dependency injection for PromoCodeService"""
    return PromoCodeService(client)


@router.post("/apply")
async def apply_promo_code(
    body: PromoApplyRequest,
    user: AuthUser = Depends(get_current_user),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    return await service.apply(
        body.promoCode,
        user.id,
        body.bookingAmount,
        booking_id=body.bookingId,
        package_id=body.packageId,
        token=user.token,
    )


@router.post("/preview")
async def preview_promo_code(body: PromoPreviewRequest):
    """Instant feedback before the code is applied for real"""
    check = rules.validate_locally(body.promo, body.amount, body.hours)
    discount = rules.calculate_discount_locally(body.promo, body.amount) if check.is_valid else None
    return {
        "isValid": check.is_valid,
        "message": check.message,
        "discountAmount": discount.discount_amount if discount else 0,
        "finalAmount": discount.final_amount if discount else body.amount,
        "displayDiscount": rules.format_discount(body.promo),
    }


@router.get("/available")
async def available_promo_codes(
    user: AuthUser = Depends(get_current_user),
    service: PromoCodeService = Depends(get_promo_code_service),
    now: datetime = Depends(utc_now),
):
    return {"promoCodes": await service.available(user.id, now, user.token)}


@router.get("/used")
async def used_promo_codes(
    user: AuthUser = Depends(get_current_user),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    return {"usage": await service.used(user.id, user.token)}


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def list_promo_codes(
    admin: AuthUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    return {"promoCodes": await service.list_all(admin.token)}


@admin_router.post("")
async def create_promo_code(
    body: PromoCodeCreate,
    admin: AuthUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    logger.info(f"🏷️ Admin {admin.id} creating promo code {body.code}")
    return await service.create(body.model_dump(mode="json"), admin.token)


@admin_router.put("/{promo_id}")
async def update_promo_code(
    promo_id: str,
    body: PromoCodeUpdate,
    admin: AuthUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    return await service.update(promo_id, body.model_dump(mode="json", exclude_none=True), admin.token)


@admin_router.delete("/{promo_id}")
async def delete_promo_code(
    promo_id: str,
    admin: AuthUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
):
    logger.info(f"🗑️ Admin {admin.id} deleting promo code {promo_id}")
    return await service.delete(promo_id, admin.token)
