"""Core infrastructure module."""

from .config.settings import RelaySettings, get_settings, reset_settings
from .exceptions import (
    CodeNotFoundError,
    ConfigurationError,
    ExtractionError,
    RegistryFullError,
    RelayError,
    ValidationError,
    WebhookAuthenticationError,
)
from .logger import setup_structured_logging

__all__ = [
    "RelaySettings",
    "get_settings",
    "reset_settings",
    "RelayError",
    "ConfigurationError",
    "WebhookAuthenticationError",
    "ValidationError",
    "CodeNotFoundError",
    "RegistryFullError",
    "ExtractionError",
    "setup_structured_logging",
]
