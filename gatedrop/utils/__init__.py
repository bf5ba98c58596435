"""Utilities package"""
from .validators import validate_email, validate_phone, validate_upi_id, validate_ifsc
from .helpers import sanitize_string, parse_datetime, safe_float, to_money

__all__ = [
    'validate_email',
    'validate_phone',
    'validate_upi_id',
    'validate_ifsc',
    'sanitize_string',
    'parse_datetime',
    'safe_float',
    'to_money',
]
