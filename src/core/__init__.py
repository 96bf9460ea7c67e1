"""Core infrastructure module."""

from .config import GatewaySettings, get_settings, reset_settings
from .environment import Environment
from .exceptions import (
    AlreadyVerifiedError,
    ClientInputError,
    ConfigurationError,
    ConsumeInProgressError,
    ConsumeWindowExpiredError,
    DeliveryFailedError,
    InvalidOTPError,
    InvalidPhoneFormatError,
    NotVerifiedError,
    OTPExpiredError,
    OTPGatewayError,
    PhoneMismatchError,
    RelayFailedError,
    SessionNotFoundError,
    TooManyAttemptsError,
    UpstreamError,
)

__all__ = [
    "GatewaySettings",
    "get_settings",
    "reset_settings",
    "Environment",
    "OTPGatewayError",
    "ConfigurationError",
    "ClientInputError",
    "InvalidPhoneFormatError",
    "SessionNotFoundError",
    "OTPExpiredError",
    "AlreadyVerifiedError",
    "TooManyAttemptsError",
    "InvalidOTPError",
    "NotVerifiedError",
    "PhoneMismatchError",
    "ConsumeWindowExpiredError",
    "ConsumeInProgressError",
    "UpstreamError",
    "DeliveryFailedError",
    "RelayFailedError",
]
