# File: src/campusbill/core/validators.py
"""Reusable validation utilities for input sanitization."""

import re
from decimal import Decimal, InvalidOperation

# Matches NUMERIC(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


def validate_payment_amount(value: Decimal | float | str, max_value: Decimal = MAX_AMOUNT) -> Decimal:
    """
    Validate a payment amount.

    Args:
        value: Amount to validate
        max_value: Maximum allowed value

    Returns:
        Validated Decimal

    Raises:
        ValueError: If value isn't a number, isn't positive, exceeds max, or has >2 decimals
    """
    try:
        decimal_value = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount format: {value}") from e

    if not decimal_value.is_finite():
        raise ValueError(f"Invalid amount format: {value}")

    if decimal_value <= 0:
        raise ValueError("Payment amount must be positive")

    if decimal_value > max_value:
        raise ValueError(f"Payment amount exceeds maximum allowed: {max_value}")

    if decimal_value.as_tuple().exponent < -2:
        raise ValueError("Payment amount cannot have more than 2 decimal places")

    return decimal_value


def validate_phone(value: str | None) -> str | None:
    """Validate phone number format. Empty means no phone."""
    if not value or not value.strip():
        return None

    cleaned = value.strip()

    # Allow: digits, spaces, +, -, (, ), .
    if not re.match(r"^[0-9\s+\-().]+$", cleaned):
        raise ValueError("Phone can only contain digits, spaces, +, -, (, ), .")

    if len(re.sub(r"[^0-9]", "", cleaned)) < 7:
        raise ValueError("Phone must contain at least 7 digits")

    return cleaned


def validate_email(value: str | None) -> str | None:
    """Basic email format validation. Returns lowercase email or None if empty."""
    if not value or not value.strip():
        return None

    cleaned = value.strip().lower()

    pattern = r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$"
    if not re.match(pattern, cleaned):
        raise ValueError("Invalid email format")

    return cleaned


def strip_tags(value: str | None) -> str | None:
    """Remove HTML tags from free text. Returns None if nothing is left."""
    if not value:
        return None

    cleaned = re.sub(r"<[^>]+>", "", value).strip()
    return cleaned or None
