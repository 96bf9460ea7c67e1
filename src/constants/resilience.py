"""Resilience-related constants: rate limits, retries and timeouts."""

from typing import Final


class RateLimits:
    """Per-client request limits (slowapi limit strings)."""

    OTP_REQUESTS: Final[str] = "5/15minutes"
    GENERAL_REQUESTS: Final[str] = "100/15minutes"


class Retries:
    """Retry configuration for upstream providers."""

    MAX_UPSTREAM_ATTEMPTS: Final[int] = 3
    BACKOFF_MULTIPLIER: Final[float] = 0.5
    BACKOFF_MIN_SECONDS: Final[float] = 0.5
    BACKOFF_MAX_SECONDS: Final[float] = 5.0


class Timeouts:
    """Network and shutdown timeouts in seconds."""

    UPSTREAM_REQUEST: Final[float] = 10.0
    UPSTREAM_CONNECT: Final[float] = 5.0
    CLEANUP_SHUTDOWN: Final[float] = 5.0
    RELAY_SHUTDOWN: Final[float] = 5.0
