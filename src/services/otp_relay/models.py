"""Data models for the OTP relay.

This module contains the data classes and enums shared by the extractor,
the code registry and the HTTP boundary.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from src.constants import OTP
from src.core.exceptions import ValidationError


class CodeState(Enum):
    """Lifecycle state of a stored verification code."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class ExtractionStage(Enum):
    """Pipeline stage that produced an extraction result."""

    MODEL = "model"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass
class VerificationCode:
    """
    A verification code held by the code registry.

    Attributes:
        id: Opaque unique identifier (UUID4)
        code: Digit string, 4-8 characters
        platform: Originating service tag or "unknown"
        sender: Envelope sender
        subject: Envelope subject
        extracted_at: Creation timestamp (UTC)
        expires_at: Expiry timestamp (UTC), always after extracted_at
        confidence: Extraction confidence in [0, 1]
        raw_envelope: Audit copy of the triggering envelope (never listed)
        used: Whether the code has been handed out
    """

    id: str
    code: str
    platform: str
    sender: str
    subject: str
    extracted_at: datetime
    expires_at: datetime
    confidence: float
    raw_envelope: str = ""
    used: bool = False

    def is_expired(self, now: datetime) -> bool:
        """A code is expired strictly after its expiry time."""
        return now > self.expires_at

    def state(self, now: datetime) -> CodeState:
        """Current lifecycle state; expiry takes precedence over use."""
        if self.is_expired(now):
            return CodeState.EXPIRED
        if self.used:
            return CodeState.USED
        return CodeState.ACTIVE

    def to_metadata(self) -> Dict[str, Any]:
        """Listing view: everything except the code value and the raw envelope."""
        return {
            "id": self.id,
            "platform": self.platform,
            "sender": self.sender,
            "subject": self.subject,
            "extracted_at": self.extracted_at,
            "expires_at": self.expires_at,
            "used": self.used,
            "confidence": self.confidence,
        }


@dataclass
class ExtractionResult:
    """
    Outcome of one extraction attempt; consumed immediately by the ingestion handler.

    Attributes:
        success: Whether a code was found
        confidence: Pipeline trust in the code, in [0, 1]
        platform: Platform tag from sender/subject fingerprinting
        reasoning: Human-readable explanation
        code: Extracted code (only when success)
        error: Failure detail from the primary stage, if any
        stage: Which stage produced the result
    """

    success: bool
    confidence: float
    platform: str = OTP.UNKNOWN_PLATFORM
    reasoning: str = ""
    code: Optional[str] = None
    error: Optional[str] = None
    stage: ExtractionStage = ExtractionStage.NONE


@dataclass(frozen=True)
class CodeQuery:
    """
    Filter criteria for CodeRegistry.get_latest.

    Attributes:
        platform: Only match this platform tag (any platform if None)
        max_age_seconds: Only match codes extracted at most this long ago
        min_confidence: Only match codes with confidence >= this value
    """

    platform: Optional[str] = None
    max_age_seconds: float = OTP.DEFAULT_MAX_AGE_SECONDS
    min_confidence: float = OTP.DEFAULT_MIN_CONFIDENCE

    def __post_init__(self):
        if not math.isfinite(self.max_age_seconds) or self.max_age_seconds < 0:
            raise ValidationError(
                "Max age must be a finite number >= 0", field="max_age_seconds"
            )
        if not math.isfinite(self.min_confidence) or not 0.0 <= self.min_confidence <= 1.0:
            raise ValidationError(
                "Min confidence must be between 0 and 1", field="min_confidence"
            )


@dataclass
class CodeLookupResult:
    """Result of a registry query; a miss is a normal outcome, not an error."""

    success: bool
    code: Optional[str] = None
    code_id: Optional[str] = None
    platform: Optional[str] = None
    extracted_at: Optional[datetime] = None
    confidence: Optional[float] = None
    error: Optional[str] = None


@dataclass
class RegistryStats:
    """Aggregate registry counts for health and monitoring."""

    total: int = 0
    active: int = 0
    used: int = 0
    expired: int = 0
    platforms: List[str] = field(default_factory=list)
    average_confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary."""
        return asdict(self)
