"""OTP delivery providers.

Providers implement ``OTPDelivery.send(phone_number, code)`` and raise
``DeliveryFailedError`` when the code could not be handed to the SMS network.
"""

from .base import FirebaseConfig, MSG91Config, OTPDelivery
from .console import ConsoleOTPDelivery
from .factory import create_otp_delivery

__all__ = [
    "OTPDelivery",
    "FirebaseConfig",
    "MSG91Config",
    "ConsoleOTPDelivery",
    "create_otp_delivery",
]
