"""Dashboard router - user bookings, refunds and store credit"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from ...auth import AuthUser, get_current_user
from ...backend_client import BackendClient, get_backend_client
from ...timezone_utils import utc_now
from ..payments.fees import PaymentMethod
from ..payments.router import get_payment_settings_service
from ..payments.settings_service import PaymentSettingsService
from .schemas import CreditPaymentRequest, RefundEstimateResponse, RefundRequestCreate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_booking_service(client: BackendClient = Depends(get_backend_client)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(client)


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings")
async def get_dashboard_bookings(
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    now: datetime = Depends(utc_now),
):
    """Bookings grouped into upcoming / ongoing / past / cancelled"""
    return await service.dashboard(user.token, now)


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_booking(booking_id, user.token)


@router.get("/stats")
async def get_user_stats(
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.user_stats(user.id, user.token)


# ============================================================================
# REFUNDS
# ============================================================================


@router.get("/bookings/{booking_id}/refund-estimate", response_model=RefundEstimateResponse)
async def get_refund_estimate(
    booking_id: str,
    method: str = Query("paynow"),
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    settings_service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    """Estimated credit refund, shown in the refund dialog before submitting"""
    booking = await service.get_booking(booking_id, user.token)
    try:
        payment_method = PaymentMethod.parse(method)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    estimate = service.refund_estimate(booking, payment_method, await settings_service.get_settings())
    return RefundEstimateResponse(
        bookingId=booking_id,
        paymentMethod=payment_method.value,
        paidAmount=estimate.paid_amount,
        transactionFee=estimate.transaction_fee,
        adminFee=estimate.admin_fee,
        refundAmount=estimate.refund_amount,
    )


@router.post("/bookings/{booking_id}/refund")
async def request_refund(
    booking_id: str,
    body: RefundRequestCreate,
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    now: datetime = Depends(utc_now),
):
    booking = await service.get_booking(booking_id, user.token)
    return await service.request_refund(booking, body.reason, user, now)


@router.get("/refunds")
async def get_refund_requests(
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return {"refunds": await service.refund_requests(user)}


# ============================================================================
# STORE CREDIT
# ============================================================================


@router.get("/credits")
async def get_credits(
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.user_credits(user)


@router.get("/credits/usage")
async def get_credit_usage(
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return {"usage": await service.credit_usage(user)}


@router.post("/credits/calculate")
async def calculate_credit_payment(
    body: CreditPaymentRequest,
    user: AuthUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.calculate_credit_payment(body.bookingAmount, user)
