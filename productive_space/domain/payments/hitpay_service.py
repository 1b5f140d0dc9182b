import logging
from decimal import Decimal
from typing import Optional
from urllib.parse import urlencode

from fastapi import HTTPException

from ...backend_client import BackendClient
from ...config import CURRENCY, FRONTEND_URL
from .fees import PaymentMethod, format_currency

logger = logging.getLogger(__name__)

PAYMENT_PURPOSE = "Payment for My Productive Space"

STATUS_MESSAGES = {
    "canceled": "Payment was cancelled. Your booking has not been extended.",
    "cancelled": "Payment was cancelled. Your booking has not been extended.",
    "failed": "Payment failed. Your booking has not been extended.",
    "pending": "Payment is still pending. Please wait or contact support.",
}
DEFAULT_STATUS_MESSAGE = "Payment was not completed. Your booking has not been extended."


def payment_status_message(status: Optional[str]) -> Optional[str]:
    """User-facing message for a HitPay redirect status; None when completed"""
    if status == "completed":
        return None
    return STATUS_MESSAGES.get((status or "").lower(), DEFAULT_STATUS_MESSAGE)


def frontend_url(path: str, params: dict) -> str:
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{FRONTEND_URL}{path}?{query}"


class HitPayService:
    """Creates HitPay checkout sessions through the backend"""

    def __init__(self, client: BackendClient):
        self.client = client

    async def create_payment_session(
        self,
        *,
        amount: Decimal,
        method: PaymentMethod,
        email: str,
        name: str,
        reference_number: str,
        redirect_url: str,
        booking_id: Optional[str] = None,
        purpose: str = PAYMENT_PURPOSE,
        token: Optional[str] = None,
    ) -> str:
        body = {
            "amount": format_currency(amount),
            "currency": CURRENCY,
            "email": email,
            "name": name,
            "purpose": purpose,
            "reference_number": reference_number,
            "redirect_url": redirect_url,
            "webhook": self.client.url_for("/hitpay/webhook"),
            "payment_methods": [PaymentMethod.parse(method).api_value],
            "bookingId": booking_id,
        }

        logger.info(f"💳 Creating HitPay session for {reference_number}: {body['amount']} {CURRENCY}")
        data = await self.client.post("/hitpay/create-payment", json=body, token=token)

        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            logger.error(f"❌ HitPay session for {reference_number} returned no checkout URL")
            raise HTTPException(status_code=502, detail="Failed to create payment session")
        return url
