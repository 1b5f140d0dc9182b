"""Payments router - fee quotes and payment settings"""

import logging

from fastapi import APIRouter, Depends

from ...auth import AuthUser, require_admin
from ...backend_client import BackendClient, get_backend_client
from ...cache import Cache, get_cache
from . import fees
from .schemas import (
    BreakdownRequest,
    BreakdownResponse,
    BulkSettingsUpdate,
    FeeQuoteRequest,
    FeeQuoteResponse,
)
from .settings_service import PaymentSettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])
admin_router = APIRouter(prefix="/admin/payment-settings", tags=["Admin"])


def get_payment_settings_service(
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
) -> PaymentSettingsService:
    """Dependency injection for PaymentSettingsService"""
    return PaymentSettingsService(client, cache)


@router.get("/settings")
async def get_payment_settings(
    service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    """Current fee settings (defaults when the backend is unreachable)"""
    settings = await service.get_settings()
    return {
        "paynowFee": settings.paynow_fee,
        "creditCardFeePercentage": settings.card_fee_percentage,
        "paynowEnabled": settings.paynow_enabled,
        "creditCardEnabled": settings.card_enabled,
        "paynowLabel": fees.fee_label(fees.PaymentMethod.PAYNOW, settings),
        "creditCardLabel": fees.fee_label(fees.PaymentMethod.CARD, settings),
    }


@router.post("/quote", response_model=FeeQuoteResponse)
async def quote_fee(
    body: FeeQuoteRequest,
    service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    settings = await service.get_settings()
    quote = fees.calculate_total(body.amount, body.paymentMethod, settings)
    return FeeQuoteResponse.from_quote(quote, fees.fee_label(body.paymentMethod, settings))


@router.post("/breakdown", response_model=BreakdownResponse)
async def price_breakdown(
    body: BreakdownRequest,
    service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    """Discounts, credit and fee for a checkout total"""
    settings = await service.get_settings()
    breakdown = fees.price_breakdown(
        body.subtotal,
        body.paymentMethod,
        settings,
        package_discount=body.packageDiscount,
        promo_discount=body.promoDiscount,
        credit=body.creditAmount,
    )
    return BreakdownResponse.from_breakdown(breakdown)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("")
async def list_payment_settings(
    admin: AuthUser = Depends(require_admin),
    service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    return {"success": True, "data": await service.list_raw(admin.token)}


@admin_router.post("/bulk-update")
async def bulk_update_payment_settings(
    body: BulkSettingsUpdate,
    admin: AuthUser = Depends(require_admin),
    service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    settings = [s.model_dump() for s in body.settings]
    return await service.bulk_update(settings, admin.token)
