"""
Helper utilities
"""
import html
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal('0.01')


def sanitize_string(value):
    """Escape HTML entities in a string.

    Converts < > & " ' to their HTML entity equivalents so that
    user-supplied strings cannot inject markup or script tags.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def parse_datetime(value):
    """
    Parse an ISO-8601 string to an aware datetime

    Args:
        value (str): e.g. "2025-03-15T18:30:00Z" or "2025-03-15T18:30:00+05:30"

    Returns:
        datetime: Parsed datetime (UTC assumed when no offset) or None if invalid
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def safe_float(value, default=None):
    """
    Safely convert value to float

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        float: Converted value or default
    """
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def to_money(value, default=None):
    """
    Convert value to a Decimal rounded to whole cents

    Floats go through str() first so 50.01 becomes Decimal('50.01') and not
    its binary expansion.

    Args:
        value: Number or numeric string
        default: Default value if conversion fails

    Returns:
        Decimal: Finite amount with two decimal places, or default
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default
    if not amount.is_finite():
        return default
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return default
