"""Custom exception classes for the OTP relay."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base exception for the OTP relay."""

    http_status: int = 500
    title: str = "Internal Server Error"
    error_type_uri: str = "urn:otprelay:error:internal-server"

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize relay error.

        Args:
            message: Error message
            recoverable: Whether the caller may retry the operation
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class ConfigurationError(RelayError):
    """Configuration is missing or invalid."""

    def __init__(self, message: str = "Configuration error", recoverable: bool = False):
        super().__init__(message, recoverable)


class WebhookAuthenticationError(RelayError):
    """Inbound webhook failed signature or freshness verification."""

    http_status = 401
    title = "Unauthorized"
    error_type_uri = "urn:otprelay:error:unauthorized"

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, recoverable=False)


class ValidationError(RelayError):
    """Input validation error."""

    http_status = 400
    title = "Bad Request"
    error_type_uri = "urn:otprelay:error:bad-request"

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
        """
        self.field = field
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, recoverable=False, details={"field": field} if field else {})


class CodeNotFoundError(RelayError):
    """No verification code exists with the given id."""

    http_status = 404
    title = "Not Found"
    error_type_uri = "urn:otprelay:error:not-found"

    def __init__(self, code_id: str):
        self.code_id = code_id
        super().__init__("Code not found", recoverable=False, details={"id": code_id})


class RegistryFullError(RelayError):
    """Code registry reached its capacity even after sweeping expired records."""

    http_status = 503
    title = "Service Unavailable"
    error_type_uri = "urn:otprelay:error:service-unavailable"

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(
            f"Code registry is full ({capacity} records)",
            recoverable=True,
            details={"capacity": capacity},
        )


class ExtractionError(RelayError):
    """Primary extraction stage failed (model transport, timeout or empty reply)."""

    def __init__(self, message: str = "Code extraction failed"):
        super().__init__(message, recoverable=True)
