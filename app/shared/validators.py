"""Shared validation utilities"""

import re
import uuid
from typing import Optional


def validate_uuid(value: str) -> bool:
    """Validate UUID format"""
    try:
        uuid.UUID(value)
        return True
    except (ValueError, AttributeError):
        return False


def validate_egypt_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an Egyptian mobile number to E.164 format.

    Accepts local (01XXXXXXXXX), international (+201XXXXXXXXX / 00201XXXXXXXXX)
    and spaced or dashed variants.

    Returns:
        Normalized phone number in E.164 format (+201XXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    if digits.startswith("0020"):
        digits = digits[4:]
    elif digits.startswith("20") and len(digits) == 12:
        digits = digits[2:]
    if digits.startswith("0"):
        digits = digits[1:]

    # Mobile numbers: 10, 11, 12 or 15 prefix followed by 8 digits
    if not re.fullmatch(r"1[0125]\d{8}", digits):
        raise ValueError("Phone number must be a valid Egyptian mobile number")

    return f"+20{digits}"


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

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def normalize_quote_code(code: str) -> str:
    """Quote codes are shared by hand; accept lowercase and stray spaces"""
    return re.sub(r"\s", "", code or "").upper()
