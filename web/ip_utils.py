"""Client IP resolution for rate limiting."""

import ipaddress
from typing import FrozenSet

from fastapi import Request

from src.core.config.settings import get_settings


def _is_valid_ip(ip_str: str) -> bool:
    """Validate IP address format."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def _get_trusted_proxies() -> FrozenSet[str]:
    raw = get_settings().trusted_proxies
    return frozenset(p.strip() for p in raw.split(",") if p.strip())


def get_real_client_ip(request: Request) -> str:
    """
    Get the client IP used as the rate limit key.

    ``X-Forwarded-For`` and ``X-Real-IP`` are honoured only when the direct
    peer is a configured trusted proxy, so clients cannot rotate their key by
    forging headers.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address, or "unknown"
    """
    trusted_proxies = _get_trusted_proxies()
    client_host = request.client.host if request.client else "unknown"

    if trusted_proxies and client_host in trusted_proxies:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # Rightmost address not added by one of our proxies
            for ip in reversed([ip.strip() for ip in forwarded.split(",")]):
                if ip not in trusted_proxies and _is_valid_ip(ip):
                    return ip

        real_ip = (request.headers.get("X-Real-IP") or "").strip()
        if real_ip and real_ip not in trusted_proxies and _is_valid_ip(real_ip):
            return real_ip

    return client_host if _is_valid_ip(client_host) else "unknown"
