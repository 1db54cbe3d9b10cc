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


def validate_br_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a Brazilian phone number and keep it as national digits.

    Args:
        phone: Phone number in formats like "(11) 99999-9999" or "+55 11 99999-9999"

    Returns:
        Digits only, area code included (10 or 11 digits)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    # Drop the country code when present
    if digits.startswith("55") and len(digits) in (12, 13):
        digits = digits[2:]

    # Area code (2) + landline (8) or mobile (9)
    if len(digits) not in (10, 11):
        raise ValueError("Phone number must have area code plus 8 or 9 digits")

    return digits


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


def validate_cpf(cpf: Optional[str]) -> Optional[str]:
    """Keep a CPF as its 11 digits (check digits are verified by the payment provider)"""
    if not cpf:
        return cpf

    digits = re.sub(r"\D", "", cpf)
    if len(digits) != 11:
        raise ValueError("CPF must have 11 digits")

    return digits
