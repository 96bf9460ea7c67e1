"""MSG91 REST API OTP delivery."""

from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from src.core.exceptions import DeliveryFailedError
from src.core.retry import TRANSIENT_NETWORK_ERRORS, get_upstream_retry
from src.utils.masking import mask_phone

from .base import MSG91Config, OTPDelivery

OTP_PATH = "/api/v5/otp"


class MSG91OTPDelivery(OTPDelivery):
    """Sends codes with the MSG91 ``/api/v5/otp`` endpoint and a preconfigured template."""

    def __init__(self, config: MSG91Config):
        """
        Initialize MSG91 delivery.

        Args:
            config: MSG91 configuration
        """
        self._config = config
        self._http_session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        """Get provider name."""
        return "msg91"

    async def _init_http_session(self) -> None:
        """Initialize HTTP session."""
        if self._http_session is None:
            timeout = aiohttp.ClientTimeout(total=self._config.timeout, connect=5)
            self._http_session = aiohttp.ClientSession(
                base_url=self._config.base_url,
                headers={"authkey": self._config.auth_key, "Accept": "application/json"},
                timeout=timeout,
            )

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Call _init_http_session() first.")
        return self._http_session

    @get_upstream_retry()
    async def _post_otp(self, params: Dict[str, str]) -> Dict[str, Any]:
        async with self._session.post(OTP_PATH, params=params) as response:
            try:
                body: Dict[str, Any] = await response.json(content_type=None)
            except (aiohttp.ContentTypeError, ValueError):
                body = {"type": "error", "message": await response.text()}

            if response.status >= 400:
                raise DeliveryFailedError(
                    f"MSG91 returned HTTP {response.status}: {body.get('message')}",
                    provider=self.name,
                )
            return body

    async def send(self, phone_number: str, code: str) -> None:
        """
        Send the code through MSG91.

        Raises:
            DeliveryFailedError: On HTTP errors, error payloads or network failures
        """
        await self._init_http_session()
        params = {
            "template_id": self._config.template_id,
            "mobile": phone_number.lstrip("+"),
            "otp": code,
        }

        try:
            body = await self._post_otp(params)
        except DeliveryFailedError as e:
            logger.error(f"MSG91 rejected OTP for {mask_phone(phone_number)}: {e.message}")
            raise
        except (aiohttp.ClientError, *TRANSIENT_NETWORK_ERRORS) as e:
            logger.error(f"MSG91 unreachable while sending to {mask_phone(phone_number)}: {e}")
            raise DeliveryFailedError(f"MSG91 request failed: {e}", provider=self.name)

        if body.get("type") != "success":
            logger.error(f"MSG91 error for {mask_phone(phone_number)}: {body.get('message')}")
            raise DeliveryFailedError(
                f"MSG91 error: {body.get('message', 'unknown error')}", provider=self.name
            )

        logger.info(
            f"OTP sent via MSG91 to {mask_phone(phone_number)} "
            f"(request_id={body.get('request_id')})"
        )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None
