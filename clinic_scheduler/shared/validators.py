"""Shared validation utilities"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

CENT = Decimal("0.01")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Clients are messaged over WhatsApp, so any country code is accepted.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+XXXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # E.164 allows at most 15 digits; shorter than 8 cannot carry a country code
    if not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must include the country code (8 to 15 digits)")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

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


def to_decimal(value) -> Optional[Decimal]:
    """Coerce a number-like value to Decimal; None when it is not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT)
