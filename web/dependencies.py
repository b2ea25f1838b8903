"""Dependency injection helpers for the relay's HTTP routes.

Service objects are created once per application in the lifespan handler
and stored on ``app.state``; routes receive them through these providers.
"""

import time

from fastapi import Request

from src.core.config.settings import RelaySettings, get_settings
from src.core.exceptions import ConfigurationError
from src.services.otp_relay import CodeExtractor, CodeRegistry
from src.utils.webhook_utils import WebhookVerifier


def _state_attr(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ConfigurationError(f"Application state '{name}' is not initialized")
    return value


def get_registry(request: Request) -> CodeRegistry:
    return _state_attr(request, "registry")


def get_extractor(request: Request) -> CodeExtractor:
    return _state_attr(request, "extractor")


def get_verifier(request: Request) -> WebhookVerifier:
    return _state_attr(request, "verifier")


def get_app_settings(request: Request) -> RelaySettings:
    """Settings the application was created with."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_uptime(request: Request) -> float:
    """Seconds since the application started."""
    started_at = getattr(request.app.state, "started_at", None)
    if started_at is None:
        return 0.0
    return round(time.monotonic() - started_at, 3)
