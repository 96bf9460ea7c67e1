"""OTP delivery provider factory."""

from loguru import logger

from src.core.config.settings import GatewaySettings
from src.core.exceptions import ConfigurationError

from .base import FirebaseConfig, MSG91Config, OTPDelivery
from .console import ConsoleOTPDelivery


def create_otp_delivery(settings: GatewaySettings) -> OTPDelivery:
    """
    Build the OTP delivery provider selected by ``OTP_PROVIDER``.

    Args:
        settings: Application settings

    Returns:
        Configured OTPDelivery instance

    Raises:
        ConfigurationError: If the provider is unknown
    """
    provider = settings.otp_provider

    if provider == "console":
        logger.warning("Using console OTP delivery - codes are written to the log")
        return ConsoleOTPDelivery()

    if provider == "firebase":
        from .firebase import FirebaseOTPDelivery

        private_key = settings.firebase_private_key
        return FirebaseOTPDelivery(
            FirebaseConfig(
                project_id=settings.firebase_project_id or "",
                private_key=private_key.get_secret_value() if private_key else "",
                client_email=settings.firebase_client_email or "",
                private_key_id=settings.firebase_private_key_id,
                client_id=settings.firebase_client_id,
            )
        )

    if provider == "msg91":
        from .msg91 import MSG91OTPDelivery

        auth_key = settings.msg91_auth_key
        return MSG91OTPDelivery(
            MSG91Config(
                auth_key=auth_key.get_secret_value() if auth_key else "",
                template_id=settings.msg91_template_id or "",
                base_url=settings.msg91_base_url,
            )
        )

    raise ConfigurationError(f"Unknown OTP provider: {provider}")
