"""Indian mobile number validation and normalization."""

import re

from src.constants import Phone
from src.core.exceptions import InvalidPhoneFormatError

_NON_DIGITS = re.compile(r"[^0-9]")
_MOBILE_PATTERN = re.compile(Phone.MOBILE_PATTERN)


def _digits(phone_number: str) -> str:
    return _NON_DIGITS.sub("", phone_number or "")


def is_valid_indian_mobile(phone_number: str) -> bool:
    """
    Check whether input is a valid Indian mobile number.

    Formatting characters (spaces, dashes, parentheses, leading plus) are
    ignored. Accepted forms are 10 national digits starting with 6-9,
    optionally prefixed with the 91 country code.

    Args:
        phone_number: Raw user input

    Returns:
        True if the number is acceptable
    """
    if not isinstance(phone_number, str):
        return False
    return bool(_MOBILE_PATTERN.match(_digits(phone_number)))


def normalize_phone_number(phone_number: str) -> str:
    """
    Normalize a mobile number to its canonical ``+91XXXXXXXXXX`` form.

    Args:
        phone_number: Raw user input

    Returns:
        Canonical phone number

    Raises:
        InvalidPhoneFormatError: If the number is not a valid Indian mobile number

    Examples:
        >>> normalize_phone_number("98765 43210")
        '+919876543210'
        >>> normalize_phone_number("+91-98765-43210")
        '+919876543210'
    """
    if not is_valid_indian_mobile(phone_number):
        raise InvalidPhoneFormatError()

    digits = _digits(phone_number)
    national = digits[-Phone.NATIONAL_LENGTH:]
    return f"+{Phone.COUNTRY_CODE}{national}"
