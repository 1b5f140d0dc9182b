"""Shared validation utilities"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

MEMBER_ROLES = ("MEMBER", "TUTOR", "STUDENT")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_sg_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a Singapore phone number to +65XXXXXXXX.

    Raises:
        ValueError: If the number is not 8 digits after the country code
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if digits.startswith("65") and len(digits) == 10:
        digits = digits[2:]

    if len(digits) != 8:
        raise ValueError("Phone number must be 8 digits for Singapore numbers")

    return f"+65{digits}"


def validate_member_role(role: str) -> str:
    role = (role or "").strip().upper()
    if role not in MEMBER_ROLES:
        raise ValueError(f"Role must be one of {', '.join(MEMBER_ROLES)}")
    return role


def to_decimal(value, default: str = "0") -> Decimal:
    """Coerce backend numbers (float, int, numeric string) to Decimal"""
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(default)
