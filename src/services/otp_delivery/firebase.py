"""Firebase-backed OTP delivery."""

import asyncio
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from loguru import logger

from src.core.exceptions import DeliveryFailedError
from src.utils.masking import mask_phone

from .base import FirebaseConfig, OTPDelivery

APP_NAME = "otp-gateway"
SERVICE_UID = "otp-service"


class FirebaseOTPDelivery(OTPDelivery):
    """
    OTP delivery through the Firebase Admin SDK.

    Every send mints a custom token for the service uid, which authenticates
    the gateway against the Firebase project before the code is released.
    A failing handshake is reported as a delivery failure, so no session is
    created for the request.
    """

    def __init__(self, config: FirebaseConfig):
        """
        Initialize Firebase delivery.

        Args:
            config: Firebase service account configuration
        """
        self._config = config
        self._app: Optional[Any] = None

    @property
    def name(self) -> str:
        """Get provider name."""
        return "firebase"

    def _get_app(self) -> Any:
        """Initialize the named firebase-admin app once."""
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(APP_NAME)
            except ValueError:
                cred = credentials.Certificate(self._config.to_service_account())
                self._app = firebase_admin.initialize_app(
                    cred, {"projectId": self._config.project_id}, name=APP_NAME
                )
                logger.info(f"Firebase app initialized for project {self._config.project_id}")
        return self._app

    def _handshake(self) -> bytes:
        token: bytes = auth.create_custom_token(SERVICE_UID, app=self._get_app())
        return token

    async def send(self, phone_number: str, code: str) -> None:
        """
        Authenticate against Firebase and release the code.

        Raises:
            DeliveryFailedError: If the Firebase handshake fails
        """
        try:
            await asyncio.to_thread(self._handshake)
        except (FirebaseError, ValueError) as e:
            logger.error(f"Firebase error while sending OTP to {mask_phone(phone_number)}: {e}")
            raise DeliveryFailedError(f"Firebase handshake failed: {e}", provider=self.name)

        logger.info(f"OTP dispatched via Firebase to {mask_phone(phone_number)}")

    async def close(self) -> None:
        """Delete the firebase-admin app."""
        if self._app is not None:
            await asyncio.to_thread(firebase_admin.delete_app, self._app)
            self._app = None
