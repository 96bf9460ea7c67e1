"""CORS origin validation for the OTP gateway."""

import re
from typing import List, Optional

from loguru import logger

from src.core.environment import Environment

_LOCALHOST_PATTERN = re.compile(
    r"^https?://"
    r"(localhost(?=[.:/]|$)|127\.0\.0\.1|(\[::1\]|::1)|0\.0\.0\.0)"
    r"(:\d+)?"
    r"(/.*)?$",
    re.IGNORECASE,
)
_ORIGIN_PATTERN = re.compile(r"^https?://[^\s/]+$", re.IGNORECASE)


def _is_localhost_origin(origin: str) -> bool:
    """Check if origin points at the local machine, including localhost subdomains."""
    if "://" in origin:
        hostname = origin.split("://", 1)[1].split(":")[0].split("/")[0].lower()
        if hostname.startswith("localhost.") or hostname.endswith(".localhost"):
            return True
    return bool(_LOCALHOST_PATTERN.match(origin))


def parse_origins(origins_str: str) -> List[str]:
    """Split a comma-separated origin list, dropping blanks and trailing slashes."""
    return [o.strip().rstrip("/") for o in (origins_str or "").split(",") if o.strip()]


def validate_cors_origins(origins_str: str, env: Optional[str] = None) -> List[str]:
    """
    Validate and parse CORS origins.

    Non-production environments accept any well-formed origin. Elsewhere the
    wildcard is fatal and localhost origins are dropped.

    Args:
        origins_str: Comma-separated list of allowed origins
        env: Environment name (defaults to ENV)

    Returns:
        List of validated origin strings

    Raises:
        ValueError: If wildcard is used in production environment
    """
    env = (env or Environment.current()).lower()
    origins = parse_origins(origins_str)

    if Environment.is_non_production(env):
        malformed = [o for o in origins if o != "*" and not _ORIGIN_PATTERN.match(o)]
        if malformed:
            logger.warning(f"Ignoring malformed CORS origins: {malformed!r}")
        return [o for o in origins if o not in malformed]

    if "*" in origins:
        raise ValueError(f"Wildcard CORS origin ('*') not allowed in {env}")

    accepted: List[str] = []
    for origin in origins:
        if _is_localhost_origin(origin):
            logger.warning(f"Removing localhost CORS origin in {env}: {origin!r}")
        elif not _ORIGIN_PATTERN.match(origin):
            logger.warning(f"Ignoring malformed CORS origin: {origin!r}")
        else:
            accepted.append(origin)

    if origins and not accepted:
        logger.error("All CORS origins were rejected. Cross-origin requests will be refused.")

    return accepted
