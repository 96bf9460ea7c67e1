"""Configuration management module."""

from .settings import GatewaySettings, get_settings, reset_settings

__all__ = [
    "GatewaySettings",
    "get_settings",
    "reset_settings",
]
