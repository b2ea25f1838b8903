"""Webhook signature verification utilities (Mailgun HTTP webhook scheme)."""

import hashlib
import hmac
import math
import time
from typing import Any, Callable, Optional

from loguru import logger

from src.constants import Webhook
from src.utils.masking import truncate_token


def _compute_signature(signing_key: str, timestamp: str, token: str) -> str:
    """HMAC-SHA256 hex digest over ``timestamp + token``."""
    return hmac.new(
        signing_key.encode("utf-8"),
        f"{timestamp}{token}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class WebhookVerifier:
    """
    Verifies that an inbound push is genuine and fresh.

    Every check reports failure as ``False``; nothing in this class raises.
    """

    def __init__(
        self,
        signing_key: Optional[str],
        max_age_seconds: int = Webhook.MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize webhook verifier.

        Args:
            signing_key: Shared HMAC secret (Mailgun HTTP webhook signing key)
            max_age_seconds: Default maximum timestamp age accepted by verify_webhook
            clock: Returns current epoch seconds (injectable for tests)
        """
        self._signing_key = signing_key
        self._max_age_seconds = max_age_seconds
        self._clock = clock

    @property
    def configured(self) -> bool:
        """Whether a signing key is available."""
        return bool(self._signing_key)

    def verify_signature(self, token: Any, timestamp: Any, signature: Any) -> bool:
        """
        Recompute the HMAC over timestamp + token and compare it to ``signature``.

        Args:
            token: Random token sent with the webhook
            timestamp: Epoch seconds sent with the webhook
            signature: Hex digest sent with the webhook

        Returns:
            True if signature is valid
        """
        if not self._signing_key:
            logger.error("Webhook signature check attempted without a signing key")
            return False

        if not all(_is_non_empty_str(v) for v in (token, timestamp, signature)):
            logger.warning(
                f"Malformed webhook signature fields (token: {truncate_token(token)})"
            )
            return False

        try:
            expected = _compute_signature(self._signing_key, timestamp, token)
            # Constant-time comparison to prevent timing attacks
            is_valid = hmac.compare_digest(expected, signature.lower())
        except (TypeError, ValueError) as e:
            logger.warning(f"Signature verification error: {e}")
            return False

        if not is_valid:
            logger.warning(
                f"Invalid webhook signature (token: {truncate_token(token)}, "
                f"timestamp: {timestamp[:20]})"
            )
        return is_valid

    def is_timestamp_valid(self, timestamp: Any, max_age_seconds: Optional[int] = None) -> bool:
        """
        Check that ``|now - timestamp|`` does not exceed ``max_age_seconds``.

        Args:
            timestamp: Epoch seconds (string or number)
            max_age_seconds: Maximum accepted skew (default: verifier's max age)

        Returns:
            True if the timestamp is fresh
        """
        max_age = self._max_age_seconds if max_age_seconds is None else max_age_seconds

        if isinstance(timestamp, bool) or timestamp is None or timestamp == "":
            logger.warning("Webhook timestamp missing")
            return False

        try:
            webhook_time = float(timestamp)
        except (TypeError, ValueError):
            logger.warning("Invalid timestamp in webhook")
            return False

        if not math.isfinite(webhook_time):
            logger.warning("Invalid timestamp in webhook")
            return False

        age = abs(self._clock() - webhook_time)
        if age > max_age:
            logger.warning(f"Webhook timestamp outside window: {age:.0f}s (max {max_age}s)")
            return False
        return True

    def verify_webhook(
        self,
        token: Any,
        timestamp: Any,
        signature: Any,
        max_age_seconds: Optional[int] = None,
    ) -> bool:
        """
        Full authenticity check: valid signature AND fresh timestamp.

        Returns:
            True only if both checks hold
        """
        return self.verify_signature(token, timestamp, signature) and self.is_timestamp_valid(
            timestamp, max_age_seconds
        )

    def generate_signature(self, timestamp: str, token: str) -> str:
        """
        Generate the signature Mailgun would send for ``timestamp`` and ``token``.

        Raises:
            ValueError: If no signing key is configured
        """
        if not self._signing_key:
            raise ValueError("Signing key is not configured")
        return _compute_signature(self._signing_key, timestamp, token)
