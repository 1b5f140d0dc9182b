"""Packages router - /buy-pass wizard, owned passes and admin catalog"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...auth import AuthUser, get_current_user, require_admin
from ...backend_client import BackendClient, get_backend_client
from ...cache import Cache, get_cache
from ...recaptcha import ensure_recaptcha
from ...timezone_utils import utc_now
from ..payments.fees import price_breakdown
from ..payments.router import get_payment_settings_service
from ..payments.schemas import BreakdownResponse
from ..payments.settings_service import PaymentSettingsService
from .schemas import (
    PackageConfirmRequest,
    PackageCreate,
    PackagePaymentRequest,
    PackageQuoteRequest,
    PackageSelection,
    PackageUpdate,
    PurchaseRequest,
    UsePassRequest,
)
from .service import PackageService, subtotal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/buy-pass", tags=["Packages"])
admin_router = APIRouter(prefix="/admin/packages", tags=["Admin"])


def get_package_service(
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
) -> PackageService:
    """Dependency injection for PackageService"""
    return PackageService(client, cache)


# ============================================================================
# CATALOG
# ============================================================================


@router.get("/packages")
async def list_packages(
    role: list[str] = Query(["MEMBER", "TUTOR", "STUDENT"]),
    service: PackageService = Depends(get_package_service),
):
    """Packages for every requested role, fetched concurrently"""
    return {"packages": await service.packages_for_roles(role)}


@router.get("/packages/role/{role}")
async def list_packages_for_role(
    role: str,
    service: PackageService = Depends(get_package_service),
):
    return {"packages": await service.packages_by_role(role)}


@router.get("/packages/{package_id}")
async def get_package(
    package_id: str,
    service: PackageService = Depends(get_package_service),
):
    return {"package": await service.get_package(package_id)}


@router.post("/quote", response_model=BreakdownResponse)
async def quote_package(
    body: PackageQuoteRequest,
    service: PackageService = Depends(get_package_service),
    settings_service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    package = await service.get_package(body.packageId)
    settings = await settings_service.get_settings()
    breakdown = price_breakdown(
        subtotal(package, body.quantity),
        body.paymentMethod,
        settings,
        promo_discount=body.promoDiscount,
        credit=body.creditAmount,
    )
    return BreakdownResponse.from_breakdown(breakdown)


# ============================================================================
# SELECTION
# ============================================================================


@router.post("/select")
async def save_selection(
    body: PackageSelection,
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    package = await service.get_package(body.packageId)
    return service.remember_selection(user.id, package, body.quantity)


@router.get("/selection")
async def get_selection(
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    selection = service.selected_package(user.id)
    if not selection:
        raise HTTPException(status_code=404, detail="No package selected")
    return selection


@router.delete("/selection")
async def clear_selection(
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    return {"cleared": service.clear_selection(user.id)}


# ============================================================================
# PURCHASE WIZARD
# ============================================================================


@router.post("/purchase")
async def purchase_package(
    body: PurchaseRequest,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
    cache: Cache = Depends(get_cache),
):
    """Step 1: customer details -> pending purchase"""
    client_ip = request.client.host if request.client else None
    await ensure_recaptcha(body.recaptchaToken, client_ip, cache)
    return await service.purchase(user, body)


@router.post("/payment")
async def create_package_payment(
    body: PackagePaymentRequest,
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
    settings_service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    """Step 2: HitPay checkout for the pending purchase"""
    settings = await settings_service.get_settings()
    if not settings.is_enabled(body.paymentMethod):
        raise HTTPException(status_code=400, detail="Selected payment method is currently unavailable")

    session = await service.create_payment(
        user, body.userPackageId, body.orderId, body.paymentMethod, body.customerInfo, settings
    )
    logger.info(f"💳 Package payment session opened for order {body.orderId} (user {user.id})")
    return session


@router.post("/confirm")
async def confirm_package_purchase(
    body: PackageConfirmRequest,
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    """Step 3: customer is back from HitPay"""
    return await service.confirm(user, body.userPackageId, body.orderId, body.hitpayReference)


# ============================================================================
# OWNED PACKAGES
# ============================================================================


@router.get("/my-packages")
async def my_packages(
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
    now: datetime = Depends(utc_now),
):
    return {"packages": await service.user_packages(user, now)}


@router.get("/passes")
async def my_passes(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    return await service.user_passes(user, page, limit)


@router.post("/passes/use")
async def use_pass(
    body: UsePassRequest,
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    return await service.use_pass(
        user, body.passId, body.bookingId, body.locationId, body.startTime, body.endTime
    )


@router.get("/history")
async def purchase_history(
    user: AuthUser = Depends(get_current_user),
    service: PackageService = Depends(get_package_service),
):
    return {"history": await service.purchase_history(user)}


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def admin_list_packages(
    search: Optional[str] = None,
    packageType: Optional[str] = None,
    targetRole: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: AuthUser = Depends(require_admin),
    service: PackageService = Depends(get_package_service),
):
    params = {"page": page, "limit": limit}
    for key, value in (("search", search), ("packageType", packageType), ("targetRole", targetRole)):
        if value:
            params[key] = value
    return await service.admin_list(admin.token, params)


@admin_router.post("")
async def admin_create_package(
    body: PackageCreate,
    admin: AuthUser = Depends(require_admin),
    service: PackageService = Depends(get_package_service),
):
    logger.info(f"📦 Admin {admin.id} creating package {body.name}")
    return await service.admin_create(body.model_dump(mode="json"), admin.token)


@admin_router.put("/{package_id}")
async def admin_update_package(
    package_id: str,
    body: PackageUpdate,
    admin: AuthUser = Depends(require_admin),
    service: PackageService = Depends(get_package_service),
):
    return await service.admin_update(package_id, body.model_dump(mode="json", exclude_none=True), admin.token)


@admin_router.delete("/{package_id}")
async def admin_delete_package(
    package_id: str,
    admin: AuthUser = Depends(require_admin),
    service: PackageService = Depends(get_package_service),
):
    logger.info(f"🗑️ Admin {admin.id} deleting package {package_id}")
    return await service.admin_delete(package_id, admin.token)


@admin_router.get("/purchases")
async def admin_list_purchases(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: AuthUser = Depends(require_admin),
    service: PackageService = Depends(get_package_service),
):
    return await service.admin_purchases(admin.token, {"page": page, "limit": limit})
