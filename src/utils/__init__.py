"""Utility functions module."""

from .log_sanitizer import sanitize_log_value
from .masking import mask_code, mask_email, truncate_token
from .webhook_utils import WebhookVerifier

__all__ = [
    "sanitize_log_value",
    "mask_code",
    "mask_email",
    "truncate_token",
    "WebhookVerifier",
]
