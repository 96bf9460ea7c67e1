"""OTP-related constants."""

from typing import Final


class OTP:
    """OTP session lifecycle configuration."""

    CODE_LENGTH: Final[int] = 6
    CODE_MIN: Final[int] = 100000
    CODE_MAX: Final[int] = 999999
    SESSION_ID_BYTES: Final[int] = 32  # 64 hex characters
    SESSION_ID_MIN_LENGTH: Final[int] = 32
    SESSION_ID_MAX_LENGTH: Final[int] = 64
    MAX_ATTEMPTS: Final[int] = 3
    TTL_SECONDS: Final[int] = 600  # 10 minutes
    CONSUME_WINDOW_SECONDS: Final[int] = 1800  # 30 minutes after verification
    CLEANUP_INTERVAL_SECONDS: Final[int] = 300  # 5 minutes


class Phone:
    """Indian mobile number format."""

    COUNTRY_CODE: Final[str] = "91"
    NATIONAL_LENGTH: Final[int] = 10
    # Applied to the digits-only form of the input
    MOBILE_PATTERN: Final[str] = r"^(\+91|91)?[6-9][0-9]{9}$"
