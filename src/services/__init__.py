"""Business logic services module."""

import importlib as _importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .form_relay import FormRelay as FormRelay
    from .otp_delivery import OTPDelivery as OTPDelivery
    from .otp_manager import OTPSessionManager as OTPSessionManager

_LAZY_MODULE_MAP = {
    "FormRelay": ("src.services.form_relay", "FormRelay"),
    "OTPDelivery": ("src.services.otp_delivery", "OTPDelivery"),
    "OTPSessionManager": ("src.services.otp_manager", "OTPSessionManager"),
    "create_otp_manager": ("src.services.otp_manager", "create_otp_manager"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str):
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
