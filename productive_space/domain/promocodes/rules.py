"""
Local promo code checks.

These give the customer immediate feedback while typing a code. The
backend re-validates on /promocode/apply and its answer wins.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ...shared.validators import to_decimal
from ...timezone_utils import parse_utc
from ..payments.fees import ZERO, format_percentage

PERCENTAGE = "percentage"
FIXED = "fixed"


@dataclass(frozen=True)
class PromoCheck:
    is_valid: bool
    message: str


@dataclass(frozen=True)
class PromoDiscount:
    discount_amount: Decimal
    final_amount: Decimal


def _field(promo: dict, *names, default=None):
    """Backend rows come in lowercase, camelCase or snake_case"""
    for name in names:
        value = promo.get(name)
        if value is not None:
            return value
    return default


def normalize_promo(promo: dict) -> dict:
    return {
        "id": promo.get("id"),
        "code": promo.get("code"),
        "name": promo.get("name"),
        "description": promo.get("description") or "",
        "discounttype": _field(promo, "discounttype", "discountType"),
        "discountvalue": _field(promo, "discountvalue", "discountValue"),
        "minimumamount": _field(promo, "minimumamount", "minimumAmount"),
        "minimumhours": _field(promo, "minimumhours", "minimumHours", "minimum_hours"),
        "maximumdiscount": _field(promo, "maximumdiscount", "maxDiscountAmount"),
        "maxusageperuser": _field(promo, "maxusageperuser", "maxUsagePerUser"),
        "maxtotalusage": _field(promo, "maxtotalusage", "maxTotalUsage"),
        "currentusage": _field(promo, "currentusage", "currentUsage"),
        "activefrom": _field(promo, "activefrom", "activeFrom"),
        "activeto": _field(promo, "activeto", "activeTo"),
        "isactive": bool(_field(promo, "isactive", "isActive", default=False)),
        "category": promo.get("category"),
        "usageCount": promo.get("usageCount"),
    }


def format_amount(amount: Decimal) -> str:
    """12 -> "12", 12.5 -> "12.50" """
    amount = to_decimal(amount)
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal("1")))
    return f"{amount:.2f}"


def validate_locally(promo: dict, amount, hours=None) -> PromoCheck:
    promo = normalize_promo(promo)
    amount = to_decimal(amount)

    if not promo["isactive"]:
        return PromoCheck(False, "Promo code is not active")

    usage = int(promo["usageCount"] or 0)
    per_user_cap = promo["maxusageperuser"]
    if per_user_cap is not None and usage >= int(per_user_cap):
        return PromoCheck(False, "Promo code usage limit reached")

    minimum = to_decimal(promo["minimumamount"])
    if minimum and amount < minimum:
        return PromoCheck(
            False,
            f"Minimum order amount of ${format_amount(minimum)} required. Your order is ${format_amount(amount)}.",
        )

    minimum_hours = to_decimal(promo["minimumhours"])
    if minimum_hours and hours is not None and to_decimal(hours) < minimum_hours:
        return PromoCheck(False, f"Minimum booking duration of {format_amount(minimum_hours)} hours required.")

    return PromoCheck(True, "Promo code is valid")


def calculate_discount_locally(promo: dict, amount) -> PromoDiscount:
    promo = normalize_promo(promo)
    amount = to_decimal(amount)

    if not promo["isactive"]:
        return PromoDiscount(ZERO, amount)

    minimum = to_decimal(promo["minimumamount"])
    if minimum and amount < minimum:
        return PromoDiscount(ZERO, amount)

    value = to_decimal(promo["discountvalue"])
    discount = ZERO
    if promo["discounttype"] == PERCENTAGE and value:
        discount = amount * value / 100
        cap = to_decimal(promo["maximumdiscount"])
        if cap and discount > cap:
            discount = cap
    elif promo["discounttype"] == FIXED and value:
        discount = min(value, amount)

    return PromoDiscount(discount, max(ZERO, amount - discount))


def format_discount(promo: dict) -> str:
    promo = normalize_promo(promo)
    value = to_decimal(promo["discountvalue"])
    if promo["discounttype"] == PERCENTAGE and value:
        return f"{format_percentage(value)}% off"
    if promo["discounttype"] == FIXED and value:
        return f"${format_amount(value)} off"
    return "Discount available"


def is_currently_available(promo: dict, now: datetime) -> bool:
    """Active, inside its date window, under the global cap and with a positive discount"""
    promo = normalize_promo(promo)
    if not promo["isactive"]:
        return False

    now = parse_utc(now)
    if promo["activefrom"] and parse_utc(promo["activefrom"]) > now:
        return False
    if promo["activeto"] and parse_utc(promo["activeto"]) < now:
        return False

    max_total: Optional[int] = promo["maxtotalusage"]
    if max_total and int(promo["currentusage"] or 0) >= int(max_total):
        return False

    if to_decimal(promo["discountvalue"]) <= 0:
        return False
    return to_decimal(promo["minimumamount"]) >= 0
