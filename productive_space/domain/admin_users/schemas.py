from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email, validate_sg_phone

MEMBER_TYPES = ("ADMIN", "STUDENT", "MEMBER", "TUTOR")


class UserUpdate(BaseModel):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    contactNumber: Optional[str] = None
    memberType: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)

    @field_validator("contactNumber")
    @classmethod
    def validate_phone(cls, v):
        return validate_sg_phone(v)

    @field_validator("memberType")
    @classmethod
    def validate_member_type(cls, v):
        if v is not None and v not in MEMBER_TYPES:
            raise ValueError(f"memberType must be one of {', '.join(MEMBER_TYPES)}")
        return v


class RoleChange(BaseModel):
    newRole: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("newRole")
    @classmethod
    def validate_role(cls, v):
        if v is not None and v not in MEMBER_TYPES:
            raise ValueError(f"newRole must be one of {', '.join(MEMBER_TYPES)}")
        return v


class SuspendRequest(BaseModel):
    reason: str

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("A suspension reason is required")
        return v


class DeleteRequest(BaseModel):
    reason: Optional[str] = None


class StudentVerification(BaseModel):
    studentVerificationStatus: str
    rejectionReason: Optional[str] = None

    @field_validator("studentVerificationStatus")
    @classmethod
    def validate_status(cls, v):
        if v not in ("VERIFIED", "REJECTED"):
            raise ValueError("studentVerificationStatus must be VERIFIED or REJECTED")
        return v

    @model_validator(mode="after")
    def require_reason_on_reject(self):
        if self.studentVerificationStatus == "REJECTED" and not (self.rejectionReason or "").strip():
            raise ValueError("A rejection reason is required")
        return self
