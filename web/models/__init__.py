"""Pydantic models for the OTP gateway web application."""

from .otp import (
    HealthResponse,
    OTPIssuedResponse,
    ResendOTPRequest,
    SendOTPRequest,
    SessionResponse,
    SubmitFormRequest,
    SubmitFormResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

__all__ = [
    "SendOTPRequest",
    "ResendOTPRequest",
    "VerifyOTPRequest",
    "SubmitFormRequest",
    "OTPIssuedResponse",
    "VerifyOTPResponse",
    "SubmitFormResponse",
    "SessionResponse",
    "HealthResponse",
]
