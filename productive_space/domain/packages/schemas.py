"""Package domain schemas"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_sg_phone
from ..payments.fees import PaymentMethod


class CustomerInfo(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    billingAddress: Optional[str] = None
    postalCode: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Customer information is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if not v or not v.strip():
            raise ValueError("Customer information is required")
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_sg_phone(v)
        return v


class PackageSelection(BaseModel):
    """Package chosen on the buy-pass page, remembered between steps"""

    packageId: str
    quantity: int = Field(default=1, ge=1, le=10)


class PackageQuoteRequest(BaseModel):
    packageId: str
    quantity: int = Field(default=1, ge=1, le=10)
    paymentMethod: str = "paynow"
    promoDiscount: Decimal = Decimal("0")
    creditAmount: Decimal = Decimal("0")

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class PurchaseRequest(BaseModel):
    """Step 1: customer details"""

    packageId: str
    quantity: int = 1
    customerInfo: CustomerInfo
    recaptchaToken: Optional[str] = None


class PackagePaymentRequest(BaseModel):
    """Step 2: open a HitPay session for a pending purchase"""

    userPackageId: str
    orderId: str
    paymentMethod: str = "paynow"
    customerInfo: CustomerInfo

    @field_validator("paymentMethod")
    @classmethod
    def validate_method(cls, v):
        return PaymentMethod.parse(v).value


class PackageConfirmRequest(BaseModel):
    """Step 3: HitPay redirect back to /buy-pass"""

    userPackageId: str
    orderId: str
    hitpayReference: str


class UsePassRequest(BaseModel):
    passId: str
    bookingId: str
    locationId: str
    startTime: str
    endTime: str


class PackageCreate(BaseModel):
    name: str
    description: str = ""
    packageType: str
    targetRole: str
    price: Decimal = Field(ge=0)
    originalPrice: Optional[Decimal] = None
    outletFee: Decimal = Decimal("0")
    passCount: int = Field(ge=1)
    validityDays: int = Field(ge=1)
    isActive: bool = True

    @field_validator("packageType")
    @classmethod
    def validate_package_type(cls, v):
        if v not in ("HALF_DAY", "FULL_DAY", "SEMESTER_BUNDLE"):
            raise ValueError("packageType must be HALF_DAY, FULL_DAY or SEMESTER_BUNDLE")
        return v


class PackageUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    originalPrice: Optional[Decimal] = None
    outletFee: Optional[Decimal] = None
    passCount: Optional[int] = None
    validityDays: Optional[int] = None
    isActive: Optional[bool] = None
