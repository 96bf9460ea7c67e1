"""Custom exception classes for the OTP gateway."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class OTPGatewayError(Exception):
    """Base exception for the OTP gateway."""

    http_status: int = 500
    title: str = "Internal Server Error"
    error_type_uri: str = "urn:otpgateway:error:internal-server"

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize OTP gateway error.

        Args:
            message: Error message
            recoverable: Whether the caller can recover by retrying
            details: Additional error details (safe to return to the client)
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def _get_http_status(self) -> int:
        """HTTP status code used when this error reaches the web layer."""
        return self.http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(OTPGatewayError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


# Client input errors - safe to report back with a human-readable reason
class ClientInputError(OTPGatewayError):
    """Base class for errors caused by the caller's input or session state."""

    http_status = 400
    title = "Bad Request"
    error_type_uri = "urn:otpgateway:error:bad-request"


class InvalidPhoneFormatError(ClientInputError):
    """Phone number is not a valid Indian mobile number."""

    error_type_uri = "urn:otpgateway:error:invalid-phone"

    def __init__(self, message: str = "Please provide a valid Indian mobile number"):
        super().__init__(message, recoverable=False, details={"field": "phoneNumber"})


class SessionNotFoundError(ClientInputError):
    """Session does not exist, was swept, or was already consumed."""

    http_status = 404
    title = "Not Found"
    error_type_uri = "urn:otpgateway:error:session-not-found"

    def __init__(self, message: str = "Invalid or expired session. Please request a new OTP."):
        super().__init__(message, recoverable=False)


class OTPExpiredError(ClientInputError):
    """OTP validity window has passed before verification."""

    http_status = 410
    title = "Gone"
    error_type_uri = "urn:otpgateway:error:otp-expired"

    def __init__(self, message: str = "OTP has expired. Please request a new one."):
        super().__init__(message, recoverable=False)


class AlreadyVerifiedError(ClientInputError):
    """Session was already verified once."""

    http_status = 409
    title = "Conflict"
    error_type_uri = "urn:otpgateway:error:already-verified"

    def __init__(self, message: str = "This session has already been verified."):
        super().__init__(message, recoverable=False)


class TooManyAttemptsError(ClientInputError):
    """Attempt budget for the session is exhausted."""

    http_status = 429
    title = "Too Many Requests"
    error_type_uri = "urn:otpgateway:error:too-many-attempts"

    def __init__(self, message: str = "Too many failed attempts. Please request a new OTP."):
        super().__init__(message, recoverable=False)


class InvalidOTPError(ClientInputError):
    """Submitted code does not match the issued code."""

    error_type_uri = "urn:otpgateway:error:invalid-otp"

    def __init__(self, remaining_attempts: int):
        """
        Initialize invalid OTP error.

        Args:
            remaining_attempts: Verify calls still allowed for this session
        """
        self.remaining_attempts = remaining_attempts
        super().__init__(
            f"Invalid OTP. {remaining_attempts} attempts remaining.",
            recoverable=True,
            details={"remaining_attempts": remaining_attempts},
        )


class NotVerifiedError(ClientInputError):
    """Session exists but has not been verified yet."""

    error_type_uri = "urn:otpgateway:error:not-verified"

    def __init__(
        self, message: str = "Phone number not verified. Please complete verification first."
    ):
        super().__init__(message, recoverable=True)


class PhoneMismatchError(ClientInputError):
    """Submitted phone number differs from the verified one."""

    http_status = 403
    title = "Forbidden"
    error_type_uri = "urn:otpgateway:error:phone-mismatch"

    def __init__(self, message: str = "Phone number mismatch. Please verify the correct number."):
        super().__init__(message, recoverable=False)


class ConsumeWindowExpiredError(ClientInputError):
    """Verified session is older than the consume window."""

    http_status = 410
    title = "Gone"
    error_type_uri = "urn:otpgateway:error:session-expired"

    def __init__(self, message: str = "Session expired. Please verify your phone number again."):
        super().__init__(message, recoverable=False)


class ConsumeInProgressError(ClientInputError):
    """Another submission for the same session is still in flight."""

    http_status = 409
    title = "Conflict"
    error_type_uri = "urn:otpgateway:error:consume-in-progress"

    def __init__(self, message: str = "A submission for this session is already in progress."):
        super().__init__(message, recoverable=True)


# Upstream errors - logged with detail, reported with a generic message
class UpstreamError(OTPGatewayError):
    """Base class for failures of third-party collaborators."""

    http_status = 502
    title = "Bad Gateway"
    error_type_uri = "urn:otpgateway:error:upstream-unavailable"
    public_message = "Upstream service unavailable. Please try again later."

    def __init__(
        self,
        message: str = "Upstream service error",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class DeliveryFailedError(UpstreamError):
    """OTP could not be delivered by the SMS provider."""

    error_type_uri = "urn:otpgateway:error:delivery-failed"
    public_message = "Failed to send OTP. Please try again later."

    def __init__(self, message: str = "OTP delivery failed", provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message, recoverable=True, details={"provider": provider})


class RelayFailedError(UpstreamError):
    """Verified form could not be forwarded to the downstream endpoint."""

    error_type_uri = "urn:otpgateway:error:relay-failed"
    public_message = "Failed to submit form. Please try again."

    def __init__(self, message: str = "Form relay failed", status: Optional[int] = None):
        self.status = status
        super().__init__(message, recoverable=True, details={"status": status})
