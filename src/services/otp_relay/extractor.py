"""Two-stage verification code extraction: text model first, regex fallback second."""

import asyncio
from typing import Optional

from loguru import logger

from src.constants import Extraction
from src.services.otp_relay.model_client import (
    CodeModelClient,
    ReplyKind,
    build_prompt,
    parse_model_reply,
)
from src.services.otp_relay.models import ExtractionResult, ExtractionStage
from src.services.otp_relay.pattern_matcher import FallbackCodeMatcher
from src.services.otp_relay.platforms import identify_platform
from src.utils.log_sanitizer import sanitize_log_value
from src.utils.masking import mask_code, mask_email


class CodeExtractor:
    """
    Converts an email (subject, body, sender) into an ExtractionResult.

    ``extract_code`` never raises: model failures, timeouts and malformed
    replies become negative results and trigger the regex fallback.
    """

    def __init__(
        self,
        model_client: Optional[CodeModelClient] = None,
        matcher: Optional[FallbackCodeMatcher] = None,
        timeout_seconds: float = Extraction.MODEL_TIMEOUT_SECONDS,
        fallback_threshold: float = Extraction.FALLBACK_THRESHOLD,
    ):
        """
        Initialize code extractor.

        Args:
            model_client: Primary stage model (regex only if None or disabled)
            matcher: Fallback rule matcher
            timeout_seconds: Upper bound on the model call
            fallback_threshold: Primary results below this confidence run the fallback
        """
        self.model_client = model_client
        self.matcher = matcher or FallbackCodeMatcher()
        self.timeout_seconds = timeout_seconds
        self.fallback_threshold = fallback_threshold

    async def extract_code(self, subject: str, body: str, sender: str) -> ExtractionResult:
        """
        Extract a verification code from an email.

        Args:
            subject: Email subject
            body: Plain-text email body
            sender: Email sender

        Returns:
            ExtractionResult (platform always from sender/subject fingerprinting)
        """
        subject = subject or ""
        body = body or ""
        sender = sender or ""
        platform = identify_platform(sender, subject)

        primary = await self._extract_with_model(subject, body, sender, platform)
        if primary.success and primary.confidence >= self.fallback_threshold:
            logger.info(
                f"Code extracted by model for {platform} "
                f"({mask_code(primary.code)}, from {mask_email(sender)})"
            )
            return primary

        fallback = self._extract_with_rules(subject, body, platform)
        if fallback is not None:
            fallback.reasoning = (
                f"AI extraction failed (confidence: {primary.confidence}), "
                f"used regex fallback ({fallback.reasoning})"
            )
            fallback.error = primary.error
            logger.info(
                f"Code extracted by fallback for {platform} "
                f"({mask_code(fallback.code)}, from {mask_email(sender)})"
            )
            return fallback

        logger.info(
            f"No code found for {platform} "
            f"(subject: {sanitize_log_value(subject, max_length=60)})"
        )
        return primary

    async def _extract_with_model(
        self, subject: str, body: str, sender: str, platform: str
    ) -> ExtractionResult:
        """Primary stage; every failure maps to a negative result."""
        if self.model_client is None or not self.model_client.enabled:
            return ExtractionResult(
                success=False,
                confidence=0.0,
                platform=platform,
                reasoning="Extraction model not configured",
                error="model not configured",
                stage=ExtractionStage.MODEL,
            )

        prompt = build_prompt(subject, body, sender, platform)
        try:
            text = await asyncio.wait_for(
                self.model_client.complete(prompt), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"Model extraction timed out after {self.timeout_seconds}s")
            return ExtractionResult(
                success=False,
                confidence=0.0,
                platform=platform,
                reasoning="Model extraction timed out",
                error=f"timeout after {self.timeout_seconds}s",
                stage=ExtractionStage.MODEL,
            )
        except Exception as e:
            logger.warning(f"Model extraction failed: {e}")
            return ExtractionResult(
                success=False,
                confidence=0.0,
                platform=platform,
                reasoning="Model extraction failed",
                error=str(e),
                stage=ExtractionStage.MODEL,
            )

        reply = parse_model_reply(text)
        if reply.kind is ReplyKind.CODE:
            return ExtractionResult(
                success=True,
                confidence=Extraction.MODEL_MATCH_CONFIDENCE,
                platform=platform,
                reasoning="Model returned a valid code",
                code=reply.code,
                stage=ExtractionStage.MODEL,
            )
        if reply.kind is ReplyKind.NONE:
            return ExtractionResult(
                success=False,
                confidence=0.0,
                platform=platform,
                reasoning="Model found no code",
                stage=ExtractionStage.MODEL,
            )

        logger.debug(f"Unexpected model reply: {sanitize_log_value(reply.raw, max_length=40)}")
        return ExtractionResult(
            success=False,
            confidence=Extraction.MODEL_MALFORMED_CONFIDENCE,
            platform=platform,
            reasoning=f"Unexpected model response: {sanitize_log_value(reply.raw, max_length=40)}",
            stage=ExtractionStage.MODEL,
        )

    def _extract_with_rules(
        self, subject: str, body: str, platform: str
    ) -> Optional[ExtractionResult]:
        match = self.matcher.extract(subject, body)
        if match is None:
            return None
        return ExtractionResult(
            success=True,
            confidence=Extraction.FALLBACK_CONFIDENCE,
            platform=platform,
            reasoning=f"rule: {match.rule}",
            code=match.code,
            stage=ExtractionStage.FALLBACK,
        )
