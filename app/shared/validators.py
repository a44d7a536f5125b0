"""Shared validation utilities"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..config import MAX_NAME_LENGTH
from ..errors import ValidationError


def validate_positive_id(value, name: str = "id") -> int:
    """
    Validate that an identifier is a positive integer.

    Accepts ints and integer-looking strings (path and query values arrive as
    strings). Booleans and floats with a fractional part are rejected.

    Raises:
        ValidationError: ``invalid <name>``
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"invalid {name}")

    if isinstance(value, int):
        numeric = value
    elif isinstance(value, float) and value.is_integer():
        numeric = int(value)
    elif isinstance(value, str) and re.fullmatch(r"\s*\d+\s*", value):
        numeric = int(value)
    else:
        raise ValidationError(f"invalid {name}")

    if numeric <= 0:
        raise ValidationError(f"invalid {name}")
    return numeric


def parse_timestamp(value, name: str = "start_time") -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken to be UTC.

    Raises:
        ValidationError: ``invalid <name>``
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z") or raw.endswith("z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"invalid {name}") from None
    else:
        raise ValidationError(f"invalid {name}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # e.g. 0001-01-01T00:00:00+05:00 falls before datetime.min in UTC
        raise ValidationError(f"invalid {name}") from None


def add_minutes(start: datetime, minutes: int, name: str = "start_time") -> datetime:
    """
    Compute an end time, rejecting starts too close to datetime.max.

    Raises:
        ValidationError: ``invalid <name>``
    """
    try:
        return start + timedelta(minutes=minutes)
    except OverflowError:
        raise ValidationError(f"invalid {name}") from None


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to datetimes read back from backends that drop the offset"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def validate_price(value, name: str = "price", allow_zero: bool = True) -> Decimal:
    """Validate a money amount, returning it as a Decimal"""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"invalid {name}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"invalid {name}") from None

    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"invalid {name}")
    return amount


def validate_duration(value, name: str = "duration") -> int:
    """Validate a duration in whole minutes"""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"invalid {name}")
    try:
        minutes = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"invalid {name}") from None
    if not minutes.is_finite() or minutes != minutes.to_integral_value() or minutes <= 0:
        raise ValidationError(f"invalid {name}")
    return int(minutes)


def normalize_name(value, field: str = "name", max_length: int = MAX_NAME_LENGTH) -> str:
    """Trim a display name and enforce presence and length"""
    if not isinstance(value, str) or value.strip() == "":
        raise ValidationError(f"{field} cannot be empty")

    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} cannot exceed {max_length} characters")
    return trimmed


def clean_description(value, max_length: int = 2000) -> Optional[str]:
    """Free-text notes: trimmed, blank becomes None"""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("description must be a string")

    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValidationError(f"description cannot exceed {max_length} characters")
    return trimmed or None


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize US phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+1XXXXXXXXXX)

    Raises:
        ValidationError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +1 prefix
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValidationError("invalid phone format")

    return f"+1{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValidationError: If email format is invalid
    """
    if not email:
        return None

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValidationError("invalid email format")

    return email
