"""CORS origin validation for the relay's HTTP API."""

from typing import List
from urllib.parse import urlsplit

from loguru import logger

from src.utils.log_sanitizer import sanitize_log_value

_LOCAL_HOSTNAMES = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})


def is_localhost_origin(origin: str) -> bool:
    """Check if origin points at a loopback host (including IPv6 and *.localhost)."""
    try:
        hostname = (urlsplit(origin).hostname or "").lower()
    except ValueError:
        return False
    return (
        hostname in _LOCAL_HOSTNAMES
        or hostname.startswith("localhost.")
        or hostname.endswith(".localhost")
    )


def validate_cors_origins(origins_str: str, env: str = "production") -> List[str]:
    """
    Parse a comma-separated origin list, dropping insecure entries outside development.

    Args:
        origins_str: Comma-separated list of allowed origins
        env: Environment name (production, staging, development, testing)

    Returns:
        List of validated origin strings

    Raises:
        ValueError: If wildcard is used in production
    """
    env = env.lower()
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]

    if env == "production" and "*" in origins:
        raise ValueError("Wildcard CORS origin ('*') not allowed in production")

    if env in ("development", "testing"):
        return origins

    invalid = [o for o in origins if o == "*" or is_localhost_origin(o)]
    if invalid:
        logger.warning(
            f"Removing insecure CORS origins in {env}: "
            f"{sanitize_log_value(', '.join(invalid), max_length=200)}"
        )
        origins = [o for o in origins if o not in invalid]
        if not origins:
            logger.error("All CORS origins were insecure and removed. Using empty list.")

    return origins
