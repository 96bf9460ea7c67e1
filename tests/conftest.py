"""Pytest configuration and common fixtures."""

import os
import sys
import warnings
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Tuple

# CRITICAL: Set environment variables BEFORE any src imports
# Actual test isolation is provided by the setup_test_environment fixture using monkeypatch.
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("OTP_PROVIDER", "console")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from unittest.mock import AsyncMock

# NOW it's safe to import from src
import pytest
import pytest_asyncio

from src.core.exceptions import DeliveryFailedError
from src.services.form_relay import FormRelay
from src.services.otp_delivery import OTPDelivery
from src.services.otp_manager import OTPSessionManager


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("OTP_PROVIDER", "console")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000")
    monkeypatch.delenv("FORM_RELAY_URL", raising=False)
    monkeypatch.delenv("TRUSTED_PROXIES", raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)

    # Reset settings singleton so each test gets fresh settings
    from src.core.config.settings import reset_settings

    reset_settings()

    from web.routes import limiter

    limiter.reset()

    yield

    reset_settings()


class FakeClock:
    """Manually advanced clock for time-window tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingDelivery(OTPDelivery):
    """Delivery double that records sent codes and can be told to fail."""

    name = "recording"

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.fail = False
        self.closed = False

    async def send(self, phone_number: str, code: str) -> None:
        if self.fail:
            raise DeliveryFailedError("provider down", provider=self.name)
        self.sent.append((phone_number, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def delivery() -> RecordingDelivery:
    """Recording OTP delivery."""
    return RecordingDelivery()


@pytest.fixture
def form_relay() -> AsyncMock:
    """Mock form relay that accepts every submission."""
    relay = AsyncMock(spec=FormRelay)
    relay.submit = AsyncMock(return_value=datetime(2024, 1, 1, 12, 5, tzinfo=timezone.utc))
    relay.close = AsyncMock()
    return relay


@pytest_asyncio.fixture
async def manager(delivery, form_relay, clock):
    """OTP session manager wired to test doubles and the fake clock."""
    otp_manager = OTPSessionManager(
        delivery=delivery,
        form_relay=form_relay,
        clock=clock,
        expose_codes=True,
    )
    yield otp_manager
    await otp_manager.stop()
