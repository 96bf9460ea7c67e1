"""Utility functions module."""

from .masking import mask_email, mask_otp, mask_phone, mask_phone_middle, mask_session_id
from .phone import is_valid_indian_mobile, normalize_phone_number

__all__ = [
    "is_valid_indian_mobile",
    "normalize_phone_number",
    "mask_phone",
    "mask_phone_middle",
    "mask_email",
    "mask_otp",
    "mask_session_id",
]
