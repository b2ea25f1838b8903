"""Configuration management module."""

from .settings import RelaySettings, get_settings, reset_settings

__all__ = ["RelaySettings", "get_settings", "reset_settings"]
