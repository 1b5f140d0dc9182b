"""Extension flow schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..payments.fees import PaymentMethod


class ExtensionQuoteRequest(BaseModel):
    newEndAt: datetime
    creditAmount: Decimal = Field(default=Decimal("0"), ge=0)
    paymentMethod: str = "paynow"

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class ExtensionSubmitRequest(BaseModel):
    """Step 1 of the extension wizard"""

    newEndAt: Optional[datetime] = None
    seatNumbers: list[str] = []
    creditAmount: Decimal = Field(default=Decimal("0"), ge=0)
    paymentMethod: str = "paynow"

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class ExtensionConfirmRequest(BaseModel):
    """Query parameters HitPay sends the customer back with"""

    paymentId: str
    status: str
    newEndAt: datetime
    seatNumbers: list[str] = []
    extensionHours: Decimal = Decimal("0")
    extensionCost: Decimal = Decimal("0")
    originalEndAt: Optional[datetime] = None
    creditAmount: Decimal = Decimal("0")
    paymentMethod: str = "paynow_online"
