"""OTP session manager and factory.

This module provides the OTPSessionManager class, which owns the full
issue -> verify -> consume lifecycle of OTP sessions.
"""

import asyncio
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from loguru import logger

from src.constants import OTP
from src.core.config.settings import GatewaySettings
from src.core.exceptions import (
    AlreadyVerifiedError,
    ConsumeInProgressError,
    ConsumeWindowExpiredError,
    InvalidOTPError,
    NotVerifiedError,
    OTPExpiredError,
    PhoneMismatchError,
    SessionNotFoundError,
    TooManyAttemptsError,
)
from src.services.form_relay import FormRelay, create_form_relay
from src.services.otp_delivery import OTPDelivery, create_otp_delivery
from src.utils.masking import mask_otp, mask_phone, mask_session_id
from src.utils.phone import normalize_phone_number

from .models import IssuedOTP, OTPSession, SessionState, SessionView
from .session_registry import SessionRegistry

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OTPSessionManager:
    """
    Issues, verifies and consumes one-time codes for Indian mobile numbers.

    A session is created only after the delivery provider accepted the code.
    It can be verified once within the TTL, with a bounded number of
    attempts, and the verified phone can then be consumed once within the
    consume window, after which the session is gone.

    Example:
        manager = OTPSessionManager(delivery, form_relay)
        await manager.start()

        issued = await manager.create("98765 43210")
        phone = await manager.verify(issued.session_id, "123456")
        submitted_at = await manager.submit_form(
            issued.session_id, "Asha", "asha@example.com", phone
        )

        await manager.close()
    """

    def __init__(
        self,
        delivery: OTPDelivery,
        form_relay: FormRelay,
        registry: Optional[SessionRegistry] = None,
        ttl_seconds: int = OTP.TTL_SECONDS,
        max_attempts: int = OTP.MAX_ATTEMPTS,
        consume_window_seconds: int = OTP.CONSUME_WINDOW_SECONDS,
        cleanup_interval_seconds: int = OTP.CLEANUP_INTERVAL_SECONDS,
        expose_codes: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize OTP session manager.

        Args:
            delivery: Provider that sends codes to phones
            form_relay: Downstream target for verified form submissions
            registry: Session store (a fresh one by default)
            ttl_seconds: Verification window per session
            max_attempts: Verify calls allowed per session
            consume_window_seconds: How long a verified session stays consumable
            cleanup_interval_seconds: Background sweep interval
            expose_codes: Return raw codes from create/resend (diagnostic mode)
            clock: Returns the current aware datetime (injectable for tests)
        """
        self._delivery = delivery
        self._form_relay = form_relay
        self._registry = registry or SessionRegistry()
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_attempts = max_attempts
        self._consume_window = timedelta(seconds=consume_window_seconds)
        self._cleanup_interval = cleanup_interval_seconds
        self._expose_codes = expose_codes
        self._clock = clock or _utcnow

        self._cleanup_task: Optional["asyncio.Task[None]"] = None

        logger.info(
            f"OTPSessionManager initialized (provider: {delivery.name}, "
            f"ttl: {ttl_seconds}s, max_attempts: {max_attempts}, "
            f"consume_window: {consume_window_seconds}s)"
        )

    @property
    def registry(self) -> SessionRegistry:
        """Get the session registry."""
        return self._registry

    @property
    def active_sessions(self) -> int:
        """Number of stored sessions, including ones awaiting the next sweep."""
        return len(self._registry)

    @property
    def is_running(self) -> bool:
        """Whether the background sweep task is active."""
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def _now(self) -> datetime:
        return self._clock()

    @staticmethod
    def _generate_code() -> str:
        return str(OTP.CODE_MIN + secrets.randbelow(OTP.CODE_MAX - OTP.CODE_MIN + 1))

    def _require_session(self, session_id: str) -> OTPSession:
        session = self._registry.get_session(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    async def _issue(self, phone_number: str, is_resend: bool) -> IssuedOTP:
        canonical = normalize_phone_number(phone_number)
        code = self._generate_code()

        # Nothing is stored when the provider rejects the code
        await self._delivery.send(canonical, code)

        session = self._registry.register(
            phone_number=canonical,
            otp_code=code,
            created_at=self._now(),
            ttl=self._ttl,
            is_resend=is_resend,
        )
        logger.debug(
            f"OTP {mask_otp(code)} issued for {mask_phone(canonical)} "
            f"(session {mask_session_id(session.session_id)})"
        )

        self.sweep()

        return IssuedOTP(
            session_id=session.session_id,
            phone_number=canonical,
            expires_at=session.expires_at,
            otp_code=code if self._expose_codes else None,
        )

    async def create(self, phone_number: str) -> IssuedOTP:
        """
        Send a fresh code to a phone number and open a session for it.

        Args:
            phone_number: Raw user input

        Returns:
            IssuedOTP with the new session id

        Raises:
            InvalidPhoneFormatError: If the number is not a valid Indian mobile
            DeliveryFailedError: If the provider could not send the code
        """
        return await self._issue(phone_number, is_resend=False)

    async def resend(self, phone_number: str, session_id: Optional[str] = None) -> IssuedOTP:
        """
        Replace a pending session with a new one and a new code.

        Verified sessions referenced by ``session_id`` are left untouched.

        Raises:
            InvalidPhoneFormatError: If the number is not a valid Indian mobile
            DeliveryFailedError: If the provider could not send the code
        """
        canonical = normalize_phone_number(phone_number)

        if session_id:
            previous = self._registry.get_session(session_id)
            if previous is not None:
                with previous.lock:
                    if not previous.verified and self._registry.unregister(session_id):
                        logger.info(
                            f"Pending session {mask_session_id(session_id)} replaced by resend"
                        )

        return await self._issue(canonical, is_resend=True)

    async def verify(self, session_id: str, code: str) -> str:
        """
        Check a code against its session.

        Every accepted call spends one attempt, including the successful one.

        Args:
            session_id: Session identifier from create/resend
            code: Code entered by the user

        Returns:
            Canonical phone number of the verified session

        Raises:
            SessionNotFoundError: Unknown, swept or consumed session
            OTPExpiredError: Verification window elapsed (session removed)
            AlreadyVerifiedError: Session was verified before
            TooManyAttemptsError: Attempt budget exhausted (session removed)
            InvalidOTPError: Wrong code, attempts remain
        """
        session = self._require_session(session_id)

        with session.lock:
            if session_id not in self._registry:
                raise SessionNotFoundError()

            if session.verified:
                raise AlreadyVerifiedError()

            if self._now() >= session.expires_at:
                self._registry.unregister(session_id)
                logger.info(f"Verify on expired session {mask_session_id(session_id)}")
                raise OTPExpiredError()

            if session.attempts >= self._max_attempts:
                self._registry.unregister(session_id)
                raise TooManyAttemptsError()

            session.attempts += 1

            if not hmac.compare_digest(session.otp_code.encode(), str(code).encode()):
                remaining = self._max_attempts - session.attempts
                logger.warning(
                    f"Invalid OTP for session {mask_session_id(session_id)} "
                    f"({remaining} attempts remaining)"
                )
                if remaining <= 0:
                    self._registry.unregister(session_id)
                    raise TooManyAttemptsError()
                raise InvalidOTPError(remaining)

            session.verified = True
            session.verified_at = self._now()

        logger.info(
            f"Session {mask_session_id(session_id)} verified for {mask_phone(session.phone_number)}"
        )
        return session.phone_number

    async def consume(
        self,
        session_id: str,
        phone_number: str,
        action: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run ``action`` once on behalf of a verified session, then delete it.

        The action runs outside every lock. If it raises, the session is kept
        so the caller can retry without verifying again.

        Args:
            session_id: Verified session identifier
            phone_number: Phone number the caller claims was verified
            action: Coroutine factory performing the downstream work

        Returns:
            Whatever ``action`` returns

        Raises:
            InvalidPhoneFormatError: If the phone number is malformed
            SessionNotFoundError: Unknown, swept or consumed session
            NotVerifiedError: Session has not been verified
            PhoneMismatchError: Phone differs from the verified one
            ConsumeWindowExpiredError: Consume window elapsed (session removed)
            ConsumeInProgressError: Another consume of this session is running
        """
        canonical = normalize_phone_number(phone_number)
        session = self._require_session(session_id)

        with session.lock:
            if session_id not in self._registry:
                raise SessionNotFoundError()

            if not session.verified or session.verified_at is None:
                raise NotVerifiedError()

            if not hmac.compare_digest(session.phone_number.encode(), canonical.encode()):
                logger.warning(
                    f"Phone mismatch on session {mask_session_id(session_id)}: "
                    f"{mask_phone(canonical)} != {mask_phone(session.phone_number)}"
                )
                raise PhoneMismatchError()

            if self._now() - session.verified_at >= self._consume_window:
                self._registry.unregister(session_id)
                raise ConsumeWindowExpiredError()

            if session.consuming:
                raise ConsumeInProgressError()

            session.consuming = True

        try:
            result = await action()
        except BaseException:
            with session.lock:
                session.consuming = False
            logger.warning(f"Consume of session {mask_session_id(session_id)} failed, kept")
            raise

        with session.lock:
            self._registry.unregister(session_id)

        logger.info(f"Session {mask_session_id(session_id)} consumed")
        return result

    async def submit_form(
        self, session_id: str, name: str, email: str, phone_number: str
    ) -> datetime:
        """
        Relay a form for a verified phone number and consume the session.

        Returns:
            Submission timestamp reported by the relay

        Raises:
            RelayFailedError: If the downstream endpoint rejected the form
        """
        canonical = normalize_phone_number(phone_number)

        async def _relay() -> datetime:
            return await self._form_relay.submit(name, email, canonical)

        return await self.consume(session_id, canonical, _relay)

    def inspect(self, session_id: str) -> SessionView:
        """
        Get a redacted view of a live session.

        Read-only: attempts are not spent and nothing is removed.

        Raises:
            SessionNotFoundError: Unknown session or one past its governing window
        """
        session = self._require_session(session_id)
        with session.lock:
            if session.state(self._now(), self._consume_window) is SessionState.EXPIRED:
                raise SessionNotFoundError()
            return session.to_view()

    def sweep(self) -> int:
        """
        Remove sessions past their governing window.

        Returns:
            Number of sessions removed (0 if the sweep failed)
        """
        try:
            return self._registry.cleanup_expired(self._now(), self._consume_window)
        except Exception as e:
            logger.error(f"Session sweep failed: {e}")
            return 0

    def health_check(self) -> Dict[str, Any]:
        """
        Return session manager health status.

        Returns:
            Dictionary with session counts and sweeper status
        """
        sessions = self._registry.get_all_sessions()
        verified = sum(1 for s in sessions if s.verified)
        return {
            "status": "healthy",
            "provider": self._delivery.name,
            "active_sessions": len(sessions),
            "pending_sessions": len(sessions) - verified,
            "verified_sessions": verified,
            "cleanup_running": self.is_running,
        }

    async def start(self) -> None:
        """Start the background sweep task."""
        if self.is_running:
            logger.warning("OTP session sweeper already running")
            return

        self._cleanup_task = asyncio.create_task(self._cleanup_loop(self._cleanup_interval))
        logger.info(f"OTP session sweeper started (interval: {self._cleanup_interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if self._cleanup_task is None:
            return

        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None
        logger.info("OTP session sweeper stopped")

    async def _cleanup_loop(self, interval: int) -> None:
        """
        Background loop for periodic sweeps.

        Args:
            interval: Sweep interval in seconds
        """
        while True:
            try:
                await asyncio.sleep(interval)
                removed = self.sweep()
                if removed > 0:
                    logger.debug(f"Periodic sweep removed {removed} sessions")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in OTP sweep loop: {e}")

    async def close(self) -> None:
        """Stop the sweeper and release provider and relay resources."""
        await self.stop()
        await self._delivery.close()
        await self._form_relay.close()
        logger.info("OTPSessionManager closed")


def create_otp_manager(
    settings: GatewaySettings,
    delivery: Optional[OTPDelivery] = None,
    form_relay: Optional[FormRelay] = None,
) -> OTPSessionManager:
    """
    Build an OTPSessionManager from settings.

    Args:
        settings: Application settings
        delivery: Delivery override (defaults to the configured provider)
        form_relay: Relay override (defaults to the configured endpoint)

    Returns:
        Configured OTPSessionManager (sweeper not started)
    """
    return OTPSessionManager(
        delivery=delivery or create_otp_delivery(settings),
        form_relay=form_relay or create_form_relay(settings),
        ttl_seconds=settings.otp_ttl_seconds,
        max_attempts=settings.otp_max_attempts,
        consume_window_seconds=settings.consume_window_seconds,
        cleanup_interval_seconds=settings.cleanup_interval_seconds,
        expose_codes=settings.expose_otp_codes,
    )
