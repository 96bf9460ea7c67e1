"""OTP Gateway - phone number verification and verified form relay service."""

# Application version (SemVer)
__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
