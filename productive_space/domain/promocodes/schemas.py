"""Promo code schemas"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

PROMO_CATEGORIES = ("STUDENT", "WELCOME", "MEMBER", "GENERAL")


class PromoApplyRequest(BaseModel):
    promoCode: str
    bookingAmount: Decimal = Field(ge=0)
    bookingId: Optional[str] = None
    packageId: Optional[str] = None

    @field_validator("promoCode")
    @classmethod
    def normalize_code(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError("Please enter a promo code")
        return v


class PromoPreviewRequest(BaseModel):
    """Local check against a promo the customer already has"""

    promo: dict
    amount: Decimal = Field(ge=0)
    hours: Optional[Decimal] = None


class PromoCodeCreate(BaseModel):
    code: str
    name: Optional[str] = None
    description: str = ""
    discounttype: str
    discountvalue: Decimal = Field(gt=0)
    minimumamount: Decimal = Field(default=Decimal("0"), ge=0)
    minimumhours: Optional[Decimal] = Field(default=None, ge=0)
    maximumdiscount: Optional[Decimal] = None
    maxusageperuser: int = Field(default=1, ge=1)
    maxtotalusage: int = Field(default=100, ge=1)
    category: Optional[str] = None
    isactive: bool = True
    activefrom: str
    activeto: Optional[str] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()

    @field_validator("discounttype")
    @classmethod
    def validate_discount_type(cls, v):
        if v not in ("percentage", "fixed"):
            raise ValueError("discounttype must be percentage or fixed")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v is not None and v not in PROMO_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(PROMO_CATEGORIES)}")
        return v

    @model_validator(mode="after")
    def check_percentage(self):
        if self.discounttype == "percentage" and self.discountvalue > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class PromoCodeUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    discounttype: Optional[str] = None
    discountvalue: Optional[Decimal] = None
    minimumamount: Optional[Decimal] = None
    minimumhours: Optional[Decimal] = None
    maximumdiscount: Optional[Decimal] = None
    maxusageperuser: Optional[int] = None
    maxtotalusage: Optional[int] = None
    category: Optional[str] = None
    isactive: Optional[bool] = None
    activefrom: Optional[str] = None
    activeto: Optional[str] = None
