"""Pytest configuration and common fixtures."""

import os
import secrets
import sys
import time
import warnings
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

TEST_SIGNING_KEY = os.getenv("TEST_MAILGUN_SIGNING_KEY", secrets.token_hex(32))

# CRITICAL: Set environment variables BEFORE any src imports
# These bootstrap variables are required for initial module imports (pydantic_settings).
# Actual test isolation is provided by the setup_test_environment fixture using monkeypatch.
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("MAILGUN_SIGNING_KEY", TEST_SIGNING_KEY)
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

# NOW it's safe to import from src
import pytest

from src.services.otp_relay import CodeRegistry
from src.utils.webhook_utils import WebhookVerifier


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    config.addinivalue_line("markers", "integration: HTTP-level flows through the FastAPI app")
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("MAILGUN_SIGNING_KEY", TEST_SIGNING_KEY)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("TRUSTED_PROXIES", raising=False)

    # Reset settings singleton so each test gets fresh settings
    from src.core.config.settings import reset_settings

    reset_settings()
    yield
    reset_settings()


class FakeClock:
    """Manually advanced UTC clock for registry tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock) -> CodeRegistry:
    """Registry with a controllable clock and default TTL (10 minutes)."""
    return CodeRegistry(clock=clock)


@pytest.fixture
def signing_key() -> str:
    return TEST_SIGNING_KEY


@pytest.fixture
def verifier(signing_key) -> WebhookVerifier:
    return WebhookVerifier(signing_key)


@pytest.fixture
def make_model_client() -> Callable[..., MagicMock]:
    """
    Build a fake primary-stage model.

    ``reply`` is returned by ``complete``; pass ``error`` to make it raise instead.
    """

    def _make(reply: str = "NONE", error: Exception = None, enabled: bool = True) -> MagicMock:
        client = MagicMock()
        client.enabled = enabled
        if error is not None:
            client.complete = AsyncMock(side_effect=error)
        else:
            client.complete = AsyncMock(return_value=reply)
        return client

    return _make


@pytest.fixture
def signed_fields(verifier) -> Callable[..., dict]:
    """Fresh timestamp/token/signature triple signed with the test key."""

    def _sign(timestamp: str = None, token: str = None) -> dict:
        timestamp = timestamp or str(int(time.time()))
        token = token or secrets.token_hex(25)
        return {
            "timestamp": timestamp,
            "token": token,
            "signature": verifier.generate_signature(timestamp, token),
        }

    return _sign


@pytest.fixture
def email_payload() -> Callable[..., dict]:
    """Mailgun-style email carrying a VinSolutions security code."""

    def _payload(**overrides) -> dict:
        payload = {
            "sender": "no-reply@vinsolutions.com",
            "recipient": "otp@relay.example.com",
            "subject": "Your security code",
            "body-plain": "Your security code 093421. It expires in 10 minutes.",
        }
        payload.update(overrides)
        return payload

    return _payload
