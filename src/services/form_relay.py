"""Downstream relay for forms submitted with a verified phone number."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

import aiohttp
from loguru import logger

from src.core.config.settings import GatewaySettings
from src.core.exceptions import RelayFailedError
from src.core.retry import TRANSIENT_NETWORK_ERRORS, get_upstream_retry
from src.utils.masking import mask_email, mask_phone


class FormRelay(ABC):
    """Abstract base class for form relays."""

    @abstractmethod
    async def submit(self, name: str, email: str, phone_number: str) -> datetime:
        """
        Forward verified identity data.

        Args:
            name: Submitter name
            email: Submitter email
            phone_number: Verified canonical phone number

        Returns:
            Submission timestamp

        Raises:
            RelayFailedError: If the downstream endpoint did not accept the form
        """
        pass

    async def close(self) -> None:
        """Release relay resources."""
        return None


class ConsoleFormRelay(FormRelay):
    """Logs submissions instead of forwarding them. Used when no relay URL is configured."""

    async def submit(self, name: str, email: str, phone_number: str) -> datetime:
        submitted_at = datetime.now(timezone.utc)
        logger.warning(
            f"[console relay] Form from {mask_email(email)} / {mask_phone(phone_number)} "
            f"not forwarded (FORM_RELAY_URL unset)"
        )
        return submitted_at


class HTTPFormRelay(FormRelay):
    """Posts ``application/x-www-form-urlencoded`` submissions to a downstream endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        user_agent: str = "Backend-OTP-Service/1.0",
    ):
        """
        Initialize HTTP form relay.

        Args:
            url: Downstream form endpoint
            timeout: Total request timeout in seconds
            user_agent: User-Agent header sent downstream
        """
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def _init_http_session(self) -> None:
        """Initialize HTTP session."""
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.timeout, connect=5),
            )

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Call _init_http_session() first.")
        return self._http_session

    @get_upstream_retry()
    async def _post_form(self, form: Dict[str, str]) -> None:
        async with self._session.post(self.url, data=form) as response:
            if response.status >= 400:
                error_text = await response.text()
                logger.error(f"Form relay returned HTTP {response.status}: {error_text[:200]}")
                raise RelayFailedError(
                    f"External form submission failed with HTTP {response.status}",
                    status=response.status,
                )

    async def submit(self, name: str, email: str, phone_number: str) -> datetime:
        """Forward the form downstream."""
        await self._init_http_session()
        submitted_at = datetime.now(timezone.utc)

        form = {
            "name": name,
            "email": email,
            "number": phone_number,
            "verified_phone": "true",
            "backend_verified": "true",
            "submission_timestamp": submitted_at.isoformat(),
        }

        logger.info(f"Submitting form for {mask_email(email)} / {mask_phone(phone_number)}")

        try:
            await self._post_form(form)
        except (aiohttp.ClientError, *TRANSIENT_NETWORK_ERRORS) as e:
            logger.error(f"Form relay unreachable: {e}")
            raise RelayFailedError(f"Form relay request failed: {e}")

        logger.info("Form submitted successfully to downstream endpoint")
        return submitted_at

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None


def create_form_relay(settings: GatewaySettings) -> FormRelay:
    """
    Build the form relay for the configured endpoint.

    Args:
        settings: Application settings

    Returns:
        HTTPFormRelay when FORM_RELAY_URL is set, otherwise ConsoleFormRelay
    """
    if not settings.form_relay_url:
        logger.warning("FORM_RELAY_URL not set - verified forms will only be logged")
        return ConsoleFormRelay()

    return HTTPFormRelay(
        url=settings.form_relay_url,
        timeout=settings.form_relay_timeout,
        user_agent=settings.form_relay_user_agent,
    )
