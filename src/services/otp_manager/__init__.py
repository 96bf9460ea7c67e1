"""OTP session lifecycle management.

This module provides the in-memory session manager that issues codes,
verifies them against bounded attempts and time windows, and hands a
verified phone number to exactly one downstream submission.
"""

from .manager import OTPSessionManager, create_otp_manager
from .models import IssuedOTP, OTPSession, SessionState, SessionView
from .session_registry import SessionRegistry

__all__ = [
    "SessionState",
    "OTPSession",
    "SessionView",
    "IssuedOTP",
    "SessionRegistry",
    "OTPSessionManager",
    "create_otp_manager",
]
