"""Application settings with Pydantic validation."""

from typing import Any, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import OTP, Extraction, Webhook


class RelaySettings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production",
        description="Environment (production, staging, development, testing)",
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Code registry
    code_ttl_minutes: int = Field(
        default=OTP.CODE_TTL_MINUTES, gt=0, description="Lifetime of a stored code in minutes"
    )
    sweep_interval_seconds: int = Field(
        default=OTP.SWEEP_INTERVAL_SECONDS, gt=0, description="Expired-code sweep interval"
    )
    max_records: int = Field(
        default=OTP.MAX_RECORDS, ge=1, description="Maximum number of codes held in memory"
    )

    # Webhook verification
    mailgun_signing_key: Optional[SecretStr] = Field(
        default=None, description="Mailgun HTTP webhook signing key"
    )
    max_webhook_age_seconds: int = Field(
        default=Webhook.MAX_AGE_SECONDS,
        gt=0,
        description="Maximum accepted age of a webhook timestamp in seconds",
    )

    # Primary extraction model
    gemini_api_key: Optional[SecretStr] = Field(
        default=None, description="Google GenAI API key (primary extraction disabled if unset)"
    )
    model_name: str = Field(default=Extraction.MODEL_NAME, description="Extraction model name")
    model_timeout_seconds: float = Field(
        default=Extraction.MODEL_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for a single primary extraction call",
    )

    # HTTP server
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )
    trusted_proxies: str = Field(
        default="", description="Comma-separated proxy IPs whose X-Forwarded-For is trusted"
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    webhook_rate_limit: str = Field(
        default=Webhook.DEFAULT_RATE_LIMIT, description="Rate limit for the ingestion endpoint"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=False, description="Write JSON lines to the log file")
    log_dir: str = Field(default="logs", description="Directory for log files")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "staging", "development", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @model_validator(mode="after")
    def ensure_signing_key_in_production(self) -> "RelaySettings":
        """
        Require the webhook signing key outside development and testing.

        Raises:
            ValueError: If MAILGUN_SIGNING_KEY is missing in production/staging
        """
        if self.env in ("production", "staging") and not self.signing_key:
            raise ValueError(
                "MAILGUN_SIGNING_KEY is required in production/staging. "
                "Copy it from the Mailgun dashboard (Sending > Webhooks)."
            )
        return self

    @property
    def signing_key(self) -> Optional[str]:
        """Plain signing key, or None when not configured."""
        if self.mailgun_signing_key is None:
            return None
        return self.mailgun_signing_key.get_secret_value() or None

    @property
    def code_ttl_seconds(self) -> int:
        """Code lifetime in seconds."""
        return self.code_ttl_minutes * 60

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS allowed origins as a list, with security validation.

        Returns:
            List of validated allowed origin URLs
        """
        from web.cors import validate_cors_origins

        return validate_cors_origins(self.cors_allowed_origins, self.env)

    def is_development(self) -> bool:
        """Check if running in development or testing mode."""
        return self.env in ("development", "testing")

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"


# Singleton instance
_settings: Optional[RelaySettings] = None


def get_settings() -> RelaySettings:
    """
    Get application settings singleton.

    Returns:
        RelaySettings instance

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = RelaySettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
