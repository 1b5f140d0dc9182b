"""
Transaction fee, discount and refund arithmetic.

Every flow that shows a price (buy-pass, booking dashboard, extensions)
uses these functions, so the numbers a customer sees are the same
everywhere. All values are Decimal. Quotes are exact; round only when
displaying or charging (FeeQuote.rounded, format_currency).
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from ...config import DEFAULT_CARD_FEE_PERCENTAGE, DEFAULT_PAYNOW_FEE, PAYNOW_FEE_THRESHOLD

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class PaymentMethod(str, Enum):
    PAYNOW = "paynow"
    CARD = "card"

    @classmethod
    def parse(cls, value) -> "PaymentMethod":
        """Accepts paynow / payNow / paynow_online / card / creditCard / credit_card"""
        if isinstance(value, PaymentMethod):
            return value
        normalized = str(value or "").strip().lower().replace("_", "").replace("-", "")
        if normalized in ("paynow", "paynowonline"):
            return cls.PAYNOW
        if normalized in ("card", "creditcard"):
            return cls.CARD
        raise ValueError(f"Unsupported payment method: {value}")

    @property
    def api_value(self) -> str:
        """Value HitPay expects in payment_methods"""
        return "paynow_online" if self is PaymentMethod.PAYNOW else "card"


@dataclass(frozen=True)
class FeeSettings:
    paynow_fee: Decimal = DEFAULT_PAYNOW_FEE
    card_fee_percentage: Decimal = DEFAULT_CARD_FEE_PERCENTAGE
    paynow_enabled: bool = True
    card_enabled: bool = True
    refund_admin_fee: Decimal = ZERO

    def is_enabled(self, method) -> bool:
        if PaymentMethod.parse(method) is PaymentMethod.PAYNOW:
            return self.paynow_enabled
        return self.card_enabled

    def to_dict(self) -> dict:
        return {
            "PAYNOW_TRANSACTION_FEE": str(self.paynow_fee),
            "CREDIT_CARD_TRANSACTION_FEE_PERCENTAGE": str(self.card_fee_percentage),
            "PAYNOW_ENABLED": self.paynow_enabled,
            "CREDIT_CARD_ENABLED": self.card_enabled,
            "ADMIN_REFUND_FEE": str(self.refund_admin_fee),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeeSettings":
        return cls(
            paynow_fee=Decimal(str(data["PAYNOW_TRANSACTION_FEE"])),
            card_fee_percentage=Decimal(str(data["CREDIT_CARD_TRANSACTION_FEE_PERCENTAGE"])),
            paynow_enabled=bool(data["PAYNOW_ENABLED"]),
            card_enabled=bool(data["CREDIT_CARD_ENABLED"]),
            refund_admin_fee=Decimal(str(data.get("ADMIN_REFUND_FEE", "0"))),
        )


DEFAULT_FEE_SETTINGS = FeeSettings()


@dataclass(frozen=True)
class FeeQuote:
    base_amount: Decimal
    fee: Decimal
    total: Decimal
    method: PaymentMethod
    fee_percentage: Optional[Decimal] = None

    def rounded(self) -> "FeeQuote":
        """Amounts as actually charged, to the cent"""
        fee = round_money(self.fee)
        return FeeQuote(
            base_amount=round_money(self.base_amount),
            fee=fee,
            total=round_money(self.base_amount + fee),
            method=self.method,
            fee_percentage=self.fee_percentage,
        )


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    package_discount: Decimal
    promo_discount: Decimal
    credit_applied: Decimal
    amount_due: Decimal
    fee: Decimal
    total: Decimal
    method: PaymentMethod
    fee_label: str
    notes: list[str] = field(default_factory=list)

    @property
    def credits_only(self) -> bool:
        return self.amount_due == ZERO and self.credit_applied > ZERO


@dataclass(frozen=True)
class RefundEstimate:
    paid_amount: Decimal
    transaction_fee: Decimal
    admin_fee: Decimal
    refund_amount: Decimal


def to_money(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal) -> Decimal:
    return to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount) -> str:
    """Two decimal places, e.g. '9.70'"""
    return str(round_money(to_money(amount)))


def format_percentage(percentage: Decimal) -> str:
    """5.0 -> '5', 2.50 -> '2.5'"""
    text = format(to_money(percentage).normalize(), "f")
    return text


def calculate_card_fee(amount, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> Decimal:
    """amount x percentage / 100, unrounded"""
    return to_money(amount) * settings.card_fee_percentage / HUNDRED


def calculate_paynow_fee(amount, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> Decimal:
    """Flat fee, only for amounts below the PayNow threshold. Nothing to pay means no fee."""
    amount = to_money(amount)
    if amount <= ZERO or amount >= PAYNOW_FEE_THRESHOLD:
        return ZERO
    return settings.paynow_fee


def calculate_fee(amount, method, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> Decimal:
    method = PaymentMethod.parse(method)
    if method is PaymentMethod.CARD:
        return calculate_card_fee(amount, settings)
    return calculate_paynow_fee(amount, settings)


def calculate_total(amount, method, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> FeeQuote:
    method = PaymentMethod.parse(method)
    amount = to_money(amount)
    fee = calculate_fee(amount, method, settings)
    return FeeQuote(
        base_amount=amount,
        fee=fee,
        total=amount + fee,
        method=method,
        fee_percentage=settings.card_fee_percentage if method is PaymentMethod.CARD else None,
    )


def fee_label(method, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> str:
    method = PaymentMethod.parse(method)
    if method is PaymentMethod.PAYNOW:
        return f"PayNow Transaction Fee (${format_currency(settings.paynow_fee)})"
    return f"Credit Card Fee ({format_percentage(settings.card_fee_percentage)}%)"


def price_breakdown(
    subtotal,
    method,
    settings: FeeSettings = DEFAULT_FEE_SETTINGS,
    *,
    package_discount=ZERO,
    promo_discount=ZERO,
    credit=ZERO,
) -> PriceBreakdown:
    """
    Apply reductions in a fixed order and charge the fee on what is left:
    package discount, then promo discount, then store credit.
    Each step is capped at the amount still outstanding.
    """
    method = PaymentMethod.parse(method)
    remaining = to_money(subtotal)
    notes = []

    applied = []
    for name, reduction in (
        ("package", to_money(package_discount)),
        ("promo", to_money(promo_discount)),
        ("credit", to_money(credit)),
    ):
        step = min(max(reduction, ZERO), remaining)
        if step < reduction:
            notes.append(f"{name} reduction capped at {format_currency(step)}")
        remaining -= step
        applied.append(step)

    fee = calculate_fee(remaining, method, settings)
    return PriceBreakdown(
        subtotal=to_money(subtotal),
        package_discount=applied[0],
        promo_discount=applied[1],
        credit_applied=applied[2],
        amount_due=remaining,
        fee=fee,
        total=remaining + fee,
        method=method,
        fee_label=fee_label(method, settings),
        notes=notes,
    )


def estimate_refund(amount, method, settings: FeeSettings = DEFAULT_FEE_SETTINGS) -> RefundEstimate:
    """
    Advisory refund for a booking whose pre-fee price was `amount`.
    The transaction fee is not refunded and the admin refund fee is deducted;
    the backend computes the real figure when the request is processed.
    """
    quote = calculate_total(amount, method, settings).rounded()
    refund = max(ZERO, quote.base_amount - settings.refund_admin_fee)
    return RefundEstimate(
        paid_amount=quote.total,
        transaction_fee=quote.fee,
        admin_fee=settings.refund_admin_fee,
        refund_amount=round_money(refund),
    )
