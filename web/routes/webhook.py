"""Inbound email webhook: verify, extract and store verification codes."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from src.core.config.settings import RelaySettings
from src.core.exceptions import WebhookAuthenticationError
from src.services.otp_relay import CodeExtractor, CodeRegistry, WebhookEnvelope
from src.utils.log_sanitizer import sanitize_log_value
from src.utils.masking import mask_email
from src.utils.webhook_utils import WebhookVerifier
from web.dependencies import get_app_settings, get_extractor, get_registry, get_verifier
from web.models import WebhookProbeResponse, WebhookResponse
from web.rate_limit import limiter, webhook_rate_limit

router = APIRouter(prefix="/webhook", tags=["webhook"])

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_payload(request: Request) -> Any:
    """Decode a JSON or form-encoded body; a malformed JSON body raises."""
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        # Attachments (UploadFile values) are not part of the envelope
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return await request.json()


def _authenticate(
    envelope: WebhookEnvelope, verifier: WebhookVerifier, settings: RelaySettings
) -> None:
    """
    Gate the request on signature and timestamp freshness.

    Outside production/staging a missing signing key disables the gate.

    Raises:
        WebhookAuthenticationError: If verification fails
    """
    if not verifier.configured:
        if settings.is_development():
            logger.warning("Webhook verification bypassed: MAILGUN_SIGNING_KEY not set")
            return
        raise WebhookAuthenticationError("Webhook signing key not configured")

    if not verifier.verify_webhook(envelope.token, envelope.timestamp, envelope.signature):
        raise WebhookAuthenticationError()


@router.get("/2fa", response_model=WebhookProbeResponse)
async def webhook_probe() -> WebhookProbeResponse:
    """Liveness probe for the webhook URL configured at the mail provider."""
    return WebhookProbeResponse(
        message="Webhook endpoint is active",
        method="This endpoint accepts POST requests from Mailgun",
        timestamp=datetime.now(timezone.utc),
        server="running",
    )


@router.post("/2fa", response_model=WebhookResponse, response_model_exclude_none=True)
@limiter.limit(webhook_rate_limit)
async def receive_email(
    request: Request,
    registry: CodeRegistry = Depends(get_registry),
    extractor: CodeExtractor = Depends(get_extractor),
    verifier: WebhookVerifier = Depends(get_verifier),
    settings: RelaySettings = Depends(get_app_settings),
) -> WebhookResponse:
    """
    Receive an email notification and store any verification code it carries.

    Args:
        request: FastAPI request object (also required for rate limiter)

    Returns:
        Stored code id/platform/confidence, or the reason nothing was stored

    Raises:
        WebhookAuthenticationError: If the signature or timestamp is rejected
        RegistryFullError: If the registry has no room left
    """
    payload = await _read_payload(request)
    try:
        envelope = WebhookEnvelope.model_validate(payload)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors()) from e

    logger.info(
        f"Received webhook (sender: {mask_email(envelope.sender)}, "
        f"subject: {sanitize_log_value(envelope.subject, max_length=60)})"
    )

    _authenticate(envelope, verifier, settings)

    result = await extractor.extract_code(envelope.subject, envelope.text_body(), envelope.sender)

    if not (result.success and result.code):
        logger.warning(f"No code stored: {result.reasoning}")
        return WebhookResponse(success=False, reasoning=result.reasoning, error=result.error)

    code_id = registry.store(
        code=result.code,
        platform=result.platform,
        sender=envelope.sender,
        subject=envelope.subject,
        confidence=result.confidence,
        raw_envelope=envelope.audit_payload(),
    )
    return WebhookResponse(
        success=True,
        code_id=code_id,
        platform=result.platform,
        confidence=result.confidence,
    )

