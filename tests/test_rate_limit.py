"""Tests for applying rate-limit settings to the shared limiter."""

import pytest

from src.core.config.settings import RelaySettings
from web.rate_limit import configure_limiter, limiter, webhook_rate_limit


@pytest.fixture(autouse=True)
def restore_limiter():
    yield
    configure_limiter(RelaySettings(_env_file=None, rate_limit_enabled=False))


class TestConfigureLimiter:
    """Tests for configure_limiter."""

    def test_applies_app_settings(self):
        settings = RelaySettings(
            _env_file=None, rate_limit_enabled=True, webhook_rate_limit="5/second"
        )
        assert configure_limiter(settings) is limiter
        assert limiter.enabled is True
        assert webhook_rate_limit() == "5/second"

    def test_disabled(self):
        configure_limiter(RelaySettings(_env_file=None, rate_limit_enabled=False))
        assert limiter.enabled is False

    def test_latest_app_wins(self):
        configure_limiter(RelaySettings(_env_file=None, webhook_rate_limit="1/minute"))
        configure_limiter(RelaySettings(_env_file=None, webhook_rate_limit="9/minute"))
        assert webhook_rate_limit() == "9/minute"
