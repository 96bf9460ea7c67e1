"""Routes package for the OTP gateway web application."""

from .health import router as health_router
from .otp import limiter
from .otp import router as otp_router

__all__ = ["health_router", "otp_router", "limiter"]
