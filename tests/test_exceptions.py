"""Tests for gateway exception classes."""

import pytest

from src.core.exceptions import (
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


class TestExceptionHierarchy:
    """Tests for status codes and base classes."""

    @pytest.mark.parametrize(
        "error,status",
        [
            (SessionNotFoundError(), 404),
            (OTPExpiredError(), 410),
            (ConsumeWindowExpiredError(), 410),
            (AlreadyVerifiedError(), 409),
            (ConsumeInProgressError(), 409),
            (TooManyAttemptsError(), 429),
            (InvalidOTPError(2), 400),
            (InvalidPhoneFormatError(), 400),
            (NotVerifiedError(), 400),
            (PhoneMismatchError(), 403),
            (DeliveryFailedError(), 502),
            (RelayFailedError(), 502),
            (ConfigurationError(), 500),
        ],
    )
    def test_http_status(self, error, status):
        assert error._get_http_status() == status
        assert isinstance(error, OTPGatewayError)

    def test_client_and_upstream_split(self):
        assert isinstance(PhoneMismatchError(), ClientInputError)
        assert isinstance(RelayFailedError(), UpstreamError)
        assert not isinstance(RelayFailedError(), ClientInputError)


class TestExceptionPayloads:
    """Tests for messages and details."""

    def test_invalid_otp_message(self):
        error = InvalidOTPError(1)
        assert error.message == "Invalid OTP. 1 attempts remaining."
        assert error.details == {"remaining_attempts": 1}
        assert error.recoverable is True

    def test_default_messages(self):
        assert SessionNotFoundError().message == (
            "Invalid or expired session. Please request a new OTP."
        )
        assert OTPExpiredError().message == "OTP has expired. Please request a new one."
        assert TooManyAttemptsError().message == (
            "Too many failed attempts. Please request a new OTP."
        )

    def test_upstream_public_message_is_generic(self):
        error = DeliveryFailedError("MSG91 returned HTTP 401: bad authkey", provider="msg91")
        assert "authkey" not in error.public_message
        assert error.details == {"provider": "msg91"}

    def test_to_dict(self):
        data = RelayFailedError("HTTP 503", status=503).to_dict()
        assert data["error"] == "RelayFailedError"
        assert data["message"] == "HTTP 503"
        assert data["details"] == {"status": 503}
        assert "timestamp" in data
