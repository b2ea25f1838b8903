"""Inbound email webhook envelope (Mailgun routes/HTTP webhook layout)."""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.services.otp_relay.pattern_matcher import html_to_text

_SIGNATURE_FIELDS = ("timestamp", "token", "signature")


class WebhookEnvelope(BaseModel):
    """
    Email notification pushed by the upstream mail provider.

    Body variants use the provider's hyphenated field names as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: Optional[str] = None
    token: Optional[str] = None
    signature: Optional[str] = None

    sender: str
    subject: str
    recipient: Optional[str] = None

    body_plain: Optional[str] = Field(default=None, alias="body-plain")
    stripped_text: Optional[str] = Field(default=None, alias="stripped-text")
    body_html: Optional[str] = Field(default=None, alias="body-html")
    body: Optional[str] = None
    message_headers: Optional[Any] = Field(default=None, alias="message-headers")

    @model_validator(mode="before")
    @classmethod
    def lift_signature_block(cls, data: Any) -> Any:
        """Accept the newer layout where ``signature`` is an object of timestamp/token/signature."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        block = data.get("signature")
        if isinstance(block, Mapping):
            for key in _SIGNATURE_FIELDS:
                data[key] = block.get(key)
        if "sender" not in data and "from" in data:
            data["sender"] = data["from"]
        return data

    @field_validator("timestamp", "token", "signature", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        """Numeric timestamps in JSON bodies are kept as their string form."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def text_body(self) -> str:
        """
        Plain-text body used for extraction.

        Returns:
            First non-empty of body-plain, stripped-text, body; else the HTML body as text
        """
        for candidate in (self.body_plain, self.stripped_text, self.body):
            if candidate and candidate.strip():
                return candidate
        return html_to_text(self.body_html or "")

    def audit_payload(self) -> str:
        """JSON copy of the envelope for audit, without the signature."""
        return self.model_dump_json(by_alias=True, exclude={"signature"}, exclude_none=True)
