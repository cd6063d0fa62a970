"""Calendar date helpers shared by availability search and booking creation."""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal

from django.utils import timezone

from .exceptions import ValidationError

DATE_FORMAT = "%Y-%m-%d"
SECONDS_PER_DAY = 60 * 60 * 24


def today() -> date:
    """Current local calendar date, time of day discarded."""
    return timezone.localdate()


def parse_calendar_date(value, label: str = "date") -> date:
    """Parse a YYYY-MM-DD value into a date, dropping any time component."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {label}. Use YYYY-MM-DD format")

    day_part = value.strip().split("T")[0].split(" ")[0]
    try:
        return datetime.strptime(day_part, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid {label}. Use YYYY-MM-DD format")


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # Inclusive at both ends: a stay ending on b_start still overlaps.
    return a_start <= b_end and a_end >= b_start


def count_nights(check_in: date, check_out: date) -> int:
    seconds = (check_out - check_in).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def calculate_total_price(price_per_night, check_in: date, check_out: date) -> Decimal:
    """Price of the whole stay: nightly rate times the number of nights."""
    return Decimal(str(price_per_night)) * count_nights(check_in, check_out)


def validate_stay(check_in, check_out, *, allow_past: bool = False) -> tuple[date, date]:
    """Parse both ends of a stay and check their order.

    Raises ``ValidationError`` when either date is malformed, when the
    check-out is not after the check-in, or (unless ``allow_past``) when the
    check-in lies before today.
    """
    check_in = parse_calendar_date(check_in, "check-in date")
    check_out = parse_calendar_date(check_out, "check-out date")

    if check_out <= check_in:
        raise ValidationError("Check-out date must be after check-in date")
    if not allow_past and check_in < today():
        raise ValidationError("Check-in date cannot be in the past")
    return check_in, check_out
