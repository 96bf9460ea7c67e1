"""Application settings with Pydantic validation."""

from typing import Any, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import OTP, RateLimits, Timeouts

OTP_PROVIDERS = ("console", "firebase", "msg91")


class GatewaySettings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, staging, development, testing)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write JSON lines to the log file")

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )
    trusted_proxies: str = Field(
        default="", description="Comma-separated proxy IPs whose X-Forwarded-For is trusted"
    )

    # OTP delivery provider
    otp_provider: str = Field(
        default="console", description="OTP delivery provider (console, firebase, msg91)"
    )

    # Firebase service account
    firebase_project_id: Optional[str] = Field(default=None, description="Firebase project id")
    firebase_private_key_id: Optional[str] = Field(default=None)
    firebase_private_key: Optional[SecretStr] = Field(
        default=None, description="Service account private key (literal \\n allowed)"
    )
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_client_id: Optional[str] = Field(default=None)

    # MSG91
    msg91_auth_key: Optional[SecretStr] = Field(default=None, description="MSG91 auth key")
    msg91_template_id: Optional[str] = Field(default=None, description="MSG91 OTP template id")
    msg91_base_url: str = Field(default="https://control.msg91.com")

    # Downstream form relay
    form_relay_url: Optional[str] = Field(
        default=None, description="Endpoint that receives verified form submissions"
    )
    form_relay_timeout: float = Field(default=Timeouts.UPSTREAM_REQUEST, gt=0)
    form_relay_user_agent: str = Field(default="Backend-OTP-Service/1.0")

    # OTP session lifecycle
    otp_ttl_seconds: int = Field(default=OTP.TTL_SECONDS, ge=1)
    otp_max_attempts: int = Field(default=OTP.MAX_ATTEMPTS, ge=1)
    consume_window_seconds: int = Field(default=OTP.CONSUME_WINDOW_SECONDS, ge=1)
    cleanup_interval_seconds: int = Field(default=OTP.CLEANUP_INTERVAL_SECONDS, ge=1)

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    otp_rate_limit: str = Field(default=RateLimits.OTP_REQUESTS)
    general_rate_limit: str = Field(default=RateLimits.GENERAL_REQUESTS)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("otp_provider")
    @classmethod
    def validate_otp_provider(cls, v: str) -> str:
        """Validate OTP provider name."""
        if v.lower() not in OTP_PROVIDERS:
            raise ValueError(f'OTP_PROVIDER must be one of: {", ".join(OTP_PROVIDERS)}')
        return v.lower()

    @field_validator("firebase_private_key")
    @classmethod
    def unescape_private_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Turn literal ``\\n`` sequences from .env files into newlines."""
        if v is None:
            return None
        return SecretStr(v.get_secret_value().replace("\\n", "\n"))

    @model_validator(mode="after")
    def validate_provider_credentials(self) -> "GatewaySettings":
        """
        Ensure the selected provider is fully configured.

        Production environments must not log codes to the console and
        must know where verified forms go.

        Raises:
            ValueError: If required provider settings are missing
        """
        if self.otp_provider == "firebase":
            missing = [
                name
                for name in ("firebase_project_id", "firebase_private_key", "firebase_client_email")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(
                    f"Firebase provider requires: {', '.join(m.upper() for m in missing)}"
                )

        if self.otp_provider == "msg91" and (not self.msg91_auth_key or not self.msg91_template_id):
            raise ValueError("MSG91 provider requires MSG91_AUTH_KEY and MSG91_TEMPLATE_ID")

        if self.env in ("production", "staging"):
            if self.otp_provider == "console":
                raise ValueError(
                    "OTP_PROVIDER=console is not allowed in production/staging. "
                    "Configure firebase or msg91."
                )
            if not self.form_relay_url:
                raise ValueError("FORM_RELAY_URL is required in production/staging")

        return self

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS allowed origins as a list, with security validation.

        Returns:
            List of validated allowed origin URLs
        """
        from web.cors import validate_cors_origins

        return validate_cors_origins(self.cors_allowed_origins, env=self.env)

    @property
    def expose_otp_codes(self) -> bool:
        """Whether raw OTP codes may be returned to callers (diagnostic mode only)."""
        return self.env in ("development", "testing")

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"


# Singleton instance
_settings: Optional[GatewaySettings] = None


def get_settings() -> GatewaySettings:
    """
    Get application settings singleton.

    Returns:
        GatewaySettings instance

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = GatewaySettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
