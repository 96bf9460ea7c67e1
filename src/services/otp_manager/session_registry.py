"""Session registry for OTP verification sessions.

This module provides the thread-safe in-memory store behind the OTP session manager.
"""

import secrets
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from loguru import logger

from src.constants import OTP
from src.utils.masking import mask_phone, mask_session_id

from .models import OTPSession, SessionState


class SessionRegistry:
    """Thread-safe registry owning the session_id -> OTPSession mapping."""

    def __init__(self, session_id_bytes: int = OTP.SESSION_ID_BYTES):
        """
        Initialize session registry.

        Args:
            session_id_bytes: Random bytes per session id (hex-encoded, so ids are twice as long)
        """
        self._sessions: Dict[str, OTPSession] = {}
        self._lock = threading.RLock()
        self._session_id_bytes = session_id_bytes

    def register(
        self,
        phone_number: str,
        otp_code: str,
        created_at: datetime,
        ttl: timedelta,
        is_resend: bool = False,
    ) -> OTPSession:
        """
        Register a new pending session under a freshly minted identifier.

        Args:
            phone_number: Canonical phone number
            otp_code: Code already delivered to the phone
            created_at: Creation timestamp
            ttl: Verification window length
            is_resend: Whether the session replaces an earlier one

        Returns:
            The stored session
        """
        with self._lock:
            session_id = secrets.token_hex(self._session_id_bytes)
            while session_id in self._sessions:
                session_id = secrets.token_hex(self._session_id_bytes)

            session = OTPSession(
                session_id=session_id,
                phone_number=phone_number,
                otp_code=otp_code,
                created_at=created_at,
                expires_at=created_at + ttl,
                is_resend=is_resend,
            )
            self._sessions[session_id] = session

        logger.info(
            f"Session registered: {mask_session_id(session_id)} "
            f"(phone={mask_phone(phone_number)}, resend={is_resend})"
        )
        return session

    def unregister(self, session_id: str) -> bool:
        """
        Unregister a session.

        Args:
            session_id: Session ID to unregister

        Returns:
            True if session was found and removed
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if not session:
            return False

        logger.debug(f"Session unregistered: {mask_session_id(session_id)}")
        return True

    def get_session(self, session_id: str) -> Optional[OTPSession]:
        """Get session by ID."""
        with self._lock:
            return self._sessions.get(session_id)

    def cleanup_expired(self, now: datetime, consume_window: timedelta) -> int:
        """
        Remove sessions past their governing window.

        Pending sessions expire at ``expires_at``; verified sessions at
        ``verified_at + consume_window``.

        Args:
            now: Current time
            consume_window: How long a verified session stays consumable

        Returns:
            Number of sessions removed
        """
        with self._lock:
            expired_ids = [
                session_id
                for session_id, session in self._sessions.items()
                if session.state(now, consume_window) is SessionState.EXPIRED
            ]
            for session_id in expired_ids:
                del self._sessions[session_id]

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} expired sessions")

        return len(expired_ids)

    def get_all_sessions(self) -> List[OTPSession]:
        """Get all stored sessions."""
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
