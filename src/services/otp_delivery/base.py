"""Base OTP delivery types: ABC and provider config dataclasses."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class FirebaseConfig:
    """Firebase service account configuration."""

    project_id: str
    private_key: str
    client_email: str
    private_key_id: Optional[str] = None
    client_id: Optional[str] = None

    def __repr__(self) -> str:
        """Return repr with masked private key."""
        return (
            f"FirebaseConfig(project_id={self.project_id!r}, private_key='***', "
            f"client_email={self.client_email!r})"
        )

    def to_service_account(self) -> dict:
        """Build the service account mapping expected by firebase-admin."""
        return {
            "type": "service_account",
            "project_id": self.project_id,
            "private_key_id": self.private_key_id,
            "private_key": self.private_key,
            "client_email": self.client_email,
            "client_id": self.client_id,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
            "client_x509_cert_url": (
                f"https://www.googleapis.com/robot/v1/metadata/x509/{self.client_email}"
            ),
        }


@dataclass
class MSG91Config:
    """MSG91 OTP API configuration."""

    auth_key: str
    template_id: str
    base_url: str = "https://control.msg91.com"
    timeout: float = 10.0

    def __repr__(self) -> str:
        """Return repr with masked auth key."""
        return (
            f"MSG91Config(auth_key='***', template_id={self.template_id!r}, "
            f"base_url={self.base_url!r})"
        )


class OTPDelivery(ABC):
    """Abstract base class for OTP delivery providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get provider name."""
        pass

    @abstractmethod
    async def send(self, phone_number: str, code: str) -> None:
        """
        Deliver a code to a phone number.

        Args:
            phone_number: Canonical +91XXXXXXXXXX phone number
            code: OTP code

        Raises:
            DeliveryFailedError: If the provider did not accept the message
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""
        return None
