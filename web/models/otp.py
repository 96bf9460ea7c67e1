"""Request and response models for the OTP API."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.constants import OTP
from src.utils.phone import is_valid_indian_mobile

_PHONE_MESSAGE = "Please provide a valid Indian mobile number"


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase field names used by the browser client."""

    model_config = ConfigDict(populate_by_name=True)


class SendOTPRequest(_CamelModel):
    """Send OTP request."""

    phone_number: str = Field(..., alias="phoneNumber", min_length=1)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_indian_mobile(v):
            raise ValueError(_PHONE_MESSAGE)
        return v


class ResendOTPRequest(SendOTPRequest):
    """Resend OTP request. ``sessionId`` names the pending session to replace."""

    session_id: Optional[str] = Field(default=None, alias="sessionId", max_length=128)


class VerifyOTPRequest(_CamelModel):
    """Verify OTP request."""

    session_id: str = Field(
        ...,
        alias="sessionId",
        min_length=OTP.SESSION_ID_MIN_LENGTH,
        max_length=OTP.SESSION_ID_MAX_LENGTH,
    )
    otp_code: str = Field(..., alias="otpCode", pattern=r"^\d{6}$")


class SubmitFormRequest(_CamelModel):
    """Form submission for a verified phone number."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v: Any) -> Any:
        """Trim before the length bounds are checked."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_indian_mobile(v):
            raise ValueError(_PHONE_MESSAGE)
        return v


class OTPIssuedResponse(_CamelModel):
    """Response for send/resend. ``otpCode`` only appears in diagnostic environments."""

    success: bool = True
    message: str
    session_id: str = Field(..., serialization_alias="sessionId")
    otp_code: Optional[str] = Field(default=None, serialization_alias="otpCode")


class VerifyOTPResponse(_CamelModel):
    """Verify OTP response."""

    success: bool = True
    message: str = "Phone number verified successfully"
    phone_number: str = Field(..., serialization_alias="phoneNumber")


class SubmitFormResponse(_CamelModel):
    """Submit form response."""

    success: bool = True
    message: str = "Form submitted successfully"
    submitted_at: str = Field(..., serialization_alias="submittedAt")


class SessionResponse(BaseModel):
    """Redacted session view."""

    success: bool = True
    session: Dict[str, Any]


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool = True
    message: str = "Server is running"
    status: str = "healthy"
    timestamp: str
    version: str
    active_sessions: int
    pending_sessions: int = 0
    verified_sessions: int = 0
    cleanup_running: bool = False
