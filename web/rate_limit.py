"""Shared slowapi limiter for the relay's HTTP endpoints."""

from slowapi import Limiter

from src.constants import Webhook
from src.core.config.settings import RelaySettings
from web.ip_utils import get_real_client_ip

limiter = Limiter(key_func=get_real_client_ip)

_webhook_limit = Webhook.DEFAULT_RATE_LIMIT


def configure_limiter(settings: RelaySettings) -> Limiter:
    """
    Apply an application's rate-limit settings to the shared limiter.

    slowapi evaluates limit providers without the request, so the ingestion
    limit is captured here when the app is created.
    """
    global _webhook_limit
    _webhook_limit = settings.webhook_rate_limit
    limiter.enabled = settings.rate_limit_enabled
    return limiter


def webhook_rate_limit() -> str:
    """Current ingestion limit (e.g. "120/minute")."""
    return _webhook_limit
