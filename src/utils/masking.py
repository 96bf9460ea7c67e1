"""Utility functions for masking sensitive data in logs and outputs."""

import re

_SESSION_PHONE_PATTERN = re.compile(r"^(\+91)(\d{6})(\d{4})$")


def mask_phone(phone: str) -> str:
    """
    Mask phone number for logging purposes.

    Example: +919876543210 -> +***3210

    Args:
        phone: Phone number to mask

    Returns:
        Masked phone number
    """
    if not phone or len(phone) < 4:
        return "***"

    if phone.startswith("+"):
        return "+" + "***" + phone[-4:]
    return "***" + phone[-4:]


def mask_phone_middle(phone: str) -> str:
    """
    Mask the middle digits of a canonical phone number for client display.

    Example: +919876543210 -> +91******3210

    Args:
        phone: Canonical ``+91XXXXXXXXXX`` phone number

    Returns:
        Phone number with the six middle digits replaced by asterisks
    """
    if not phone:
        return "***"
    masked, count = _SESSION_PHONE_PATTERN.subn(r"\1******\3", phone)
    if count:
        return masked
    return mask_phone(phone)


def mask_email(email: str) -> str:
    """
    Mask email address for logging purposes.

    Example: user@example.com -> u***@e***.com
    """
    if not email or "@" not in email:
        return "***"

    local, _, domain = email.partition("@")
    masked_local = local[0] + "***" if local else "***"

    domain_parts = domain.split(".")
    if len(domain_parts) >= 2 and domain_parts[0]:
        masked_domain = domain_parts[0][0] + "***." + ".".join(domain_parts[1:])
    else:
        masked_domain = "***"

    return f"{masked_local}@{masked_domain}"


def mask_otp(otp: str) -> str:
    """Mask OTP code completely."""
    if not otp:
        return "****"
    return "*" * len(otp)


def mask_session_id(session_id: str) -> str:
    """Shorten a session id to a non-replayable prefix for logs."""
    if not session_id or len(session_id) < 8:
        return "***"
    return session_id[:8] + "..."
