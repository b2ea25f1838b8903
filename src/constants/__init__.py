"""Constants for the OTP relay.

All classes can be imported directly from this package:
    from src.constants import OTP, Extraction, Webhook
"""

from .otp import OTP, Extraction, Webhook

__all__ = [
    "OTP",
    "Extraction",
    "Webhook",
]
