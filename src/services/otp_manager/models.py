"""Data models for the OTP session manager.

This module contains the data classes and enums used by the OTP session lifecycle.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from src.utils.masking import mask_phone_middle


class SessionState(Enum):
    """OTP session state enumeration."""

    PENDING = "pending"
    VERIFIED = "verified"
    EXPIRED = "expired"


@dataclass
class OTPSession:
    """
    One OTP issuance-through-verification lifecycle for a phone number.

    Attributes:
        session_id: Opaque unguessable identifier (lookup key and capability)
        phone_number: Canonical +91XXXXXXXXXX phone number
        otp_code: 6-digit code compared on verify
        created_at: Session creation timestamp
        expires_at: End of the verification window
        attempts: Verify calls accepted so far
        verified: Whether the code was confirmed
        verified_at: Verification timestamp, anchors the consume window
        is_resend: Whether the session was created via resend
        consuming: Whether a downstream submission is in flight
        lock: Serializes read-modify-write on this session (auto-initialized)
    """

    session_id: str
    phone_number: str
    otp_code: str = field(repr=False)
    created_at: datetime
    expires_at: datetime
    attempts: int = 0
    verified: bool = False
    verified_at: Optional[datetime] = None
    is_resend: bool = False
    consuming: bool = False
    lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def state(self, now: datetime, consume_window: timedelta) -> SessionState:
        """Derive the lifecycle state at ``now``."""
        if self.verified:
            if self.verified_at is not None and now - self.verified_at >= consume_window:
                return SessionState.EXPIRED
            return SessionState.VERIFIED
        if now >= self.expires_at:
            return SessionState.EXPIRED
        return SessionState.PENDING

    def to_view(self) -> "SessionView":
        """Build the redacted read model."""
        return SessionView(
            phone_number=mask_phone_middle(self.phone_number),
            verified=self.verified,
            attempts=self.attempts,
            created_at=self.created_at,
            expires_at=self.expires_at,
            verified_at=self.verified_at,
            is_resend=self.is_resend,
        )


@dataclass(frozen=True)
class SessionView:
    """Redacted, read-only view of a session. Never carries the code."""

    phone_number: str
    verified: bool
    attempts: int
    created_at: datetime
    expires_at: datetime
    verified_at: Optional[datetime] = None
    is_resend: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize timestamps as ISO-8601 strings."""
        return {
            "phoneNumber": self.phone_number,
            "verified": self.verified,
            "attempts": self.attempts,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
            "isResend": self.is_resend,
        }


@dataclass(frozen=True)
class IssuedOTP:
    """
    Result of issuing a new OTP session.

    Attributes:
        session_id: Identifier handed to the client
        phone_number: Canonical phone number the code was sent to
        expires_at: End of the verification window
        otp_code: The raw code, populated only in diagnostic environments
    """

    session_id: str
    phone_number: str
    expires_at: datetime
    otp_code: Optional[str] = field(default=None, repr=False)
