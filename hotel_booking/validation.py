"""Field checks applied before any request reaches the store."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from .exceptions import ValidationError

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]{10,}$")

CUSTOMER_NAME_MAX_LENGTH = 150
PHONE_MAX_LENGTH = 50
ROOM_TYPE_NAME_MAX_LENGTH = 100


def is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_identifier(value, label: str = "ID") -> int:
    """Identifiers are positive integers, given as ints or digit strings."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}")
    if isinstance(value, int):
        identifier = value
    elif isinstance(value, str) and value.strip().isdigit():
        identifier = int(value.strip())
    else:
        raise ValidationError(f"Invalid {label}")
    if identifier < 1:
        raise ValidationError(f"Invalid {label}")
    return identifier


def parse_positive_int(value, message: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise ValidationError(message)
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise ValidationError(message)
    return value


def parse_price(value, message: str = "pricePerNight must be non-negative") -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(message)
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(message)
    if not price.is_finite() or price < 0:
        raise ValidationError(message)
    return price


def clean_text(value, message: str, max_length: Optional[int] = None, label: str = "Value") -> str:
    """Trim a required text field, rejecting blanks and anything over ``max_length``."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    text = value.strip()
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return text


def clean_phone(value) -> str:
    phone = clean_text(value, "Customer phone is required", PHONE_MAX_LENGTH, "Customer phone")
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Please enter a valid phone number")
    return phone
