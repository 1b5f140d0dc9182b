"""Booking domain schemas"""

from decimal import Decimal

from pydantic import BaseModel, field_validator


class RefundRequestCreate(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Please provide a reason for the refund")
        return v


class RefundEstimateResponse(BaseModel):
    """Advisory refund; the backend decides the final amount"""

    bookingId: str
    paymentMethod: str
    paidAmount: Decimal
    transactionFee: Decimal
    adminFee: Decimal
    refundAmount: Decimal


class CreditPaymentRequest(BaseModel):
    bookingAmount: Decimal
