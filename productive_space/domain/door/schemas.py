from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class OpenLinkRequest(BaseModel):
    bookingRef: str
    recaptchaToken: Optional[str] = None

    @field_validator("bookingRef")
    @classmethod
    def validate_ref(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Booking reference is required")
        return v


class AdminOpenLinkRequest(BaseModel):
    seatNumber: str
    startTime: datetime
    endTime: datetime


class SendAccessLinkRequest(BaseModel):
    bookingRef: str
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)
