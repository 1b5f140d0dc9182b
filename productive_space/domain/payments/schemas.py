"""Payment domain schemas"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .fees import FeeQuote, PaymentMethod, PriceBreakdown


class FeeQuoteRequest(BaseModel):
    amount: Decimal = Field(ge=0)
    paymentMethod: str

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class FeeQuoteResponse(BaseModel):
    baseAmount: Decimal
    transactionFee: Decimal
    totalAmount: Decimal
    feePercentage: Optional[Decimal] = None
    chargedFee: Decimal
    chargedTotal: Decimal
    feeLabel: str

    @classmethod
    def from_quote(cls, quote: FeeQuote, label: str) -> "FeeQuoteResponse":
        charged = quote.rounded()
        return cls(
            baseAmount=quote.base_amount,
            transactionFee=quote.fee,
            totalAmount=quote.total,
            feePercentage=quote.fee_percentage,
            chargedFee=charged.fee,
            chargedTotal=charged.total,
            feeLabel=label,
        )


class BreakdownRequest(BaseModel):
    subtotal: Decimal = Field(ge=0)
    paymentMethod: str
    packageDiscount: Decimal = Decimal("0")
    promoDiscount: Decimal = Decimal("0")
    creditAmount: Decimal = Decimal("0")

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class BreakdownResponse(BaseModel):
    """Price shown before checkout"""

    subtotal: Decimal
    packageDiscount: Decimal
    promoDiscount: Decimal
    creditApplied: Decimal
    amountDue: Decimal
    transactionFee: Decimal
    totalAmount: Decimal
    feeLabel: str
    creditsOnly: bool

    @classmethod
    def from_breakdown(cls, b: PriceBreakdown) -> "BreakdownResponse":
        return cls(
            subtotal=b.subtotal,
            packageDiscount=b.package_discount,
            promoDiscount=b.promo_discount,
            creditApplied=b.credit_applied,
            amountDue=b.amount_due,
            transactionFee=b.fee,
            totalAmount=b.total,
            feeLabel=b.fee_label,
            creditsOnly=b.credits_only,
        )


class SettingUpdate(BaseModel):
    settingKey: str
    settingValue: str


class BulkSettingsUpdate(BaseModel):
    settings: list[SettingUpdate]
