"""
Validation utilities
"""
import re


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_phone(phone):
    """
    Validate phone number format

    Accepts 10-digit local numbers and international numbers with an
    optional leading +, ignoring spaces, dashes, dots and parentheses.
    """
    if not phone:
        return False

    cleaned = re.sub(r'[\s\-\(\)\.]', '', phone)
    return bool(re.match(r'^\+?\d{10,15}$', cleaned))


def validate_upi_id(upi_id):
    """UPI handles look like name@bank"""
    if not upi_id:
        return False
    return bool(re.match(r'^[a-zA-Z0-9._-]{2,256}@[a-zA-Z]{2,64}$', upi_id))


def validate_ifsc(ifsc):
    """Indian Financial System Code: 4 letters, a zero, 6 alphanumerics"""
    if not ifsc:
        return False
    return bool(re.match(r'^[A-Z]{4}0[A-Z0-9]{6}$', ifsc.upper()))
