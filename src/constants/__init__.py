"""Unified constants and configuration values for the OTP gateway.

All classes can be imported directly from this package:
    from src.constants import OTP, Phone, RateLimits
"""

# OTP
from .otp import OTP, Phone

# Resilience-related
from .resilience import RateLimits, Retries, Timeouts

__all__ = [
    "OTP",
    "Phone",
    "RateLimits",
    "Retries",
    "Timeouts",
]
