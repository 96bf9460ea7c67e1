"""Console OTP delivery for local development."""

from loguru import logger

from src.utils.masking import mask_phone

from .base import OTPDelivery


class ConsoleOTPDelivery(OTPDelivery):
    """Writes codes to the log instead of sending an SMS. Development and tests only."""

    @property
    def name(self) -> str:
        """Get provider name."""
        return "console"

    async def send(self, phone_number: str, code: str) -> None:
        """Log the code for the developer to read."""
        logger.warning(f"[console delivery] OTP for {mask_phone(phone_number)}: {code}")
