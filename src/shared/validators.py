"""Validation utilities for the household ledger application."""

import base64
import binascii
import re
from typing import Any, Dict, Optional, Tuple
from datetime import datetime
from decimal import Decimal, InvalidOperation

from .exceptions import ValidationError


# Recurring expense frequencies
FREQUENCY_TYPES = ["weekly", "monthly", "yearly", "days", "months"]

MIN_YEAR = 2000
MAX_YEAR = 2100

# Receipt images
RECEIPT_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp", "image/jpg"]

HEX_COLOR_PATTERN = re.compile(r'^#[0-9a-fA-F]{6}$')


def validate_amount(amount: Any, allow_zero: bool = False) -> Decimal:
    """
    Validate monetary amount.

    Args:
        amount: Amount to validate
        allow_zero: Accept 0 as a valid amount

    Returns:
        Validated amount as Decimal

    Raises:
        ValidationError: If amount is invalid
    """
    if amount is None or isinstance(amount, bool):
        raise ValidationError("Amount is required")

    try:
        decimal_amount = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid amount format")

    if not decimal_amount.is_finite():
        raise ValidationError("Invalid amount format")

    if decimal_amount < 0 or (decimal_amount == 0 and not allow_zero):
        raise ValidationError("Amount must be greater than 0")

    if decimal_amount > Decimal('999999.99'):
        raise ValidationError("Amount is too large")

    # Ensure at most 2 decimal places
    if decimal_amount.as_tuple().exponent < -2:
        raise ValidationError("Amount can have at most 2 decimal places")

    return decimal_amount


def validate_month(month: Any, field_name: str = "month") -> int:
    """
    Validate a calendar month (1-12).

    Raises:
        ValidationError: If month is invalid
    """
    value = _to_int(month, field_name)

    if value < 1 or value > 12:
        raise ValidationError(f"Invalid {field_name}. Must be between 1 and 12")

    return value


def validate_year(year: Any, field_name: str = "year") -> int:
    """
    Validate a calendar year.

    Raises:
        ValidationError: If year is invalid
    """
    value = _to_int(year, field_name)

    if value < MIN_YEAR or value > MAX_YEAR:
        raise ValidationError(
            f"Invalid {field_name}. Must be between {MIN_YEAR} and {MAX_YEAR}"
        )

    return value


def validate_day_of_month(day: Any) -> int:
    """Validate a day of month (1-31)."""
    value = _to_int(day, "day of month")

    if value < 1 or value > 31:
        raise ValidationError("Invalid day of month. Must be between 1 and 31")

    return value


def validate_frequency(frequency_type: str, frequency_value: Any = 1) -> Tuple[str, int]:
    """
    Validate a recurring expense frequency.

    Args:
        frequency_type: One of FREQUENCY_TYPES
        frequency_value: Multiplier for "days" and "months" (every N days/months)

    Returns:
        Tuple of (frequency_type, frequency_value)

    Raises:
        ValidationError: If frequency is invalid
    """
    if not frequency_type:
        raise ValidationError("Frequency type is required")

    frequency_type = frequency_type.lower()

    if frequency_type not in FREQUENCY_TYPES:
        raise ValidationError(
            f"Invalid frequency type. Must be one of: {', '.join(FREQUENCY_TYPES)}"
        )

    value = 1 if frequency_value is None else _to_int(frequency_value, "frequency value")

    if value < 1:
        raise ValidationError("Frequency value must be at least 1")

    return frequency_type, value


def validate_quota_percent(quota_percent: Any) -> float:
    """
    Validate a member quota percentage.

    Raises:
        ValidationError: If quota is not a non-negative number
    """
    if quota_percent is None or isinstance(quota_percent, bool):
        raise ValidationError("Quota percent is required")

    try:
        value = float(quota_percent)
    except (TypeError, ValueError):
        raise ValidationError("Quota percent must be a number")

    if value != value or value < 0:
        raise ValidationError("Quota percent must be greater than or equal to 0")

    return value


def validate_activity_window(
    start_month: Optional[int],
    start_year: Optional[int],
    end_month: Optional[int],
    end_year: Optional[int]
) -> Dict[str, Optional[int]]:
    """
    Validate the optional start/end bounds of a recurring expense.

    A bound only takes effect when both its month and year are present.

    Returns:
        Dictionary with the validated bounds

    Raises:
        ValidationError: If a bound is malformed or the end precedes the start
    """
    window = {
        'start_month': None if start_month is None else validate_month(start_month, "start month"),
        'start_year': None if start_year is None else validate_year(start_year, "start year"),
        'end_month': None if end_month is None else validate_month(end_month, "end month"),
        'end_year': None if end_year is None else validate_year(end_year, "end year")
    }

    if None not in window.values():
        start = (window['start_year'], window['start_month'])
        end = (window['end_year'], window['end_month'])
        if end < start:
            raise ValidationError("End month cannot be before start month")

    return window


def validate_date(date_str: str) -> str:
    """
    Validate date format (ISO 8601: YYYY-MM-DD).

    Args:
        date_str: Date string to validate

    Returns:
        Validated date string

    Raises:
        ValidationError: If date is invalid
    """
    if not date_str:
        raise ValidationError("Date is required")

    try:
        datetime.strptime(date_str[:10], '%Y-%m-%d')
        return date_str[:10]
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def validate_color(color: str) -> str:
    """
    Validate a hex color (#rrggbb).

    Raises:
        ValidationError: If color is invalid
    """
    if not color or not HEX_COLOR_PATTERN.match(color):
        raise ValidationError("Invalid color. Use the #rrggbb format")

    return color.lower()


def validate_image_content_type(content_type: str) -> str:
    """
    Validate receipt image content type.

    Raises:
        ValidationError: If the content type is not supported
    """
    if not content_type or content_type.lower() not in RECEIPT_CONTENT_TYPES:
        raise ValidationError(
            f"Unsupported file type. Allowed types: {', '.join(RECEIPT_CONTENT_TYPES)}"
        )

    return content_type.lower()


def validate_file_size(size_bytes: int, max_size_mb: int = 5) -> int:
    """
    Validate file size.

    Args:
        size_bytes: File size in bytes
        max_size_mb: Maximum allowed size in MB (default: 5MB)

    Returns:
        Validated size

    Raises:
        ValidationError: If file size exceeds limit
    """
    max_size_bytes = max_size_mb * 1024 * 1024

    if size_bytes > max_size_bytes:
        raise ValidationError(f"File size exceeds {max_size_mb}MB limit")

    return size_bytes


def decode_base64_image(base64_string: str) -> bytes:
    """
    Decode a base64-encoded image.

    Args:
        base64_string: Base64 string, optionally with a data URI prefix

    Returns:
        Decoded image bytes

    Raises:
        ValidationError: If base64 string is invalid
    """
    if not base64_string:
        raise ValidationError("Image data is required")

    # Remove data URI prefix if present
    if ',' in base64_string:
        header, base64_string = base64_string.split(',', 1)
        if not header.startswith('data:image/'):
            raise ValidationError("Invalid image format")

    try:
        return base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 encoding")


def sanitize_string(value: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize string input.

    Args:
        value: String to sanitize
        max_length: Optional maximum length

    Returns:
        Sanitized string

    Raises:
        ValidationError: If string is invalid
    """
    if not isinstance(value, str):
        raise ValidationError("Value must be a string")

    # Remove leading/trailing whitespace
    value = value.strip()

    if not value:
        raise ValidationError("Value cannot be empty")

    if max_length and len(value) > max_length:
        raise ValidationError(f"Value exceeds maximum length of {max_length}")

    return value


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}")

    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name}")

    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(f"Invalid {field_name}")

    return int(number)
