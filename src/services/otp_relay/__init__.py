"""Email OTP relay: code extraction and the in-memory code registry."""

from .envelope import WebhookEnvelope
from .extractor import CodeExtractor
from .model_client import (
    CodeModelClient,
    GeminiCodeModel,
    ModelReply,
    ReplyKind,
    build_prompt,
    parse_model_reply,
)
from .models import (
    CodeLookupResult,
    CodeQuery,
    CodeState,
    ExtractionResult,
    ExtractionStage,
    RegistryStats,
    VerificationCode,
)
from .pattern_matcher import FALLBACK_RULES, ExtractionRule, FallbackCodeMatcher, html_to_text
from .platforms import PLATFORM_FINGERPRINTS, identify_platform
from .registry import NO_MATCHING_CODES, CodeRegistry

__all__ = [
    "WebhookEnvelope",
    "CodeExtractor",
    "CodeModelClient",
    "GeminiCodeModel",
    "ModelReply",
    "ReplyKind",
    "build_prompt",
    "parse_model_reply",
    "CodeLookupResult",
    "CodeQuery",
    "CodeState",
    "ExtractionResult",
    "ExtractionStage",
    "RegistryStats",
    "VerificationCode",
    "FALLBACK_RULES",
    "ExtractionRule",
    "FallbackCodeMatcher",
    "html_to_text",
    "PLATFORM_FINGERPRINTS",
    "identify_platform",
    "NO_MATCHING_CODES",
    "CodeRegistry",
]
