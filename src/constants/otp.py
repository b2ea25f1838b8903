"""OTP relay constants."""

from typing import Final


class OTP:
    """Code registry configuration."""

    CODE_TTL_MINUTES: Final[int] = 10
    MAX_RECORDS: Final[int] = 1000
    SWEEP_INTERVAL_SECONDS: Final[int] = 60
    SWEEP_STOP_TIMEOUT_SECONDS: Final[int] = 5

    # Query defaults
    DEFAULT_MAX_AGE_SECONDS: Final[int] = 300
    DEFAULT_MIN_CONFIDENCE: Final[float] = 0.5
    MAX_QUERY_AGE_SECONDS: Final[int] = 86400

    # A stored code must fullmatch this pattern (ASCII digits only)
    CODE_PATTERN: Final[str] = r"[0-9]{4,8}"
    UNKNOWN_PLATFORM: Final[str] = "unknown"


class Extraction:
    """Confidence levels assigned by the extraction pipeline."""

    MODEL_MATCH_CONFIDENCE: Final[float] = 0.95
    MODEL_MALFORMED_CONFIDENCE: Final[float] = 0.3
    FALLBACK_CONFIDENCE: Final[float] = 0.7
    # Primary results below this trigger the regex fallback
    FALLBACK_THRESHOLD: Final[float] = 0.8

    NO_CODE_MARKER: Final[str] = "NONE"
    MODEL_NAME: Final[str] = "gemini-2.0-flash"
    MODEL_TEMPERATURE: Final[float] = 0.1
    MODEL_MAX_OUTPUT_TOKENS: Final[int] = 50
    MODEL_TIMEOUT_SECONDS: Final[float] = 10.0
    # Email bodies are truncated before being sent to the model
    MAX_PROMPT_BODY_CHARS: Final[int] = 8000


class Webhook:
    """Inbound webhook verification settings."""

    MAX_AGE_SECONDS: Final[int] = 300
    TOKEN_LOG_PREFIX_CHARS: Final[int] = 8
    DEFAULT_RATE_LIMIT: Final[str] = "120/minute"
