"""Shared dependencies for the OTP gateway web application."""

from fastapi import Request

from src.services.otp_manager import OTPSessionManager


def get_otp_manager(request: Request) -> OTPSessionManager:
    """
    Get the OTP session manager created by the application factory.

    Args:
        request: FastAPI request object

    Returns:
        The application's OTPSessionManager
    """
    manager: OTPSessionManager = request.app.state.otp_manager
    return manager
