"""Tests for webhook envelope parsing."""

import json

import pytest
from pydantic import ValidationError

from src.services.otp_relay import WebhookEnvelope


class TestWebhookEnvelope:
    """Tests for the Mailgun envelope model."""

    def test_flat_layout(self):
        envelope = WebhookEnvelope.model_validate(
            {
                "timestamp": "1700000000",
                "token": "tok",
                "signature": "sig",
                "sender": "a@github.com",
                "subject": "Code",
                "body-plain": "Your code is 123456",
            }
        )
        assert envelope.token == "tok"
        assert envelope.signature == "sig"
        assert envelope.body_plain == "Your code is 123456"

    def test_nested_signature_block(self):
        envelope = WebhookEnvelope.model_validate(
            {
                "signature": {"timestamp": 1700000000, "token": "tok", "signature": "sig"},
                "from": "a@github.com",
                "subject": "Code",
            }
        )
        assert envelope.timestamp == "1700000000"
        assert envelope.token == "tok"
        assert envelope.signature == "sig"
        assert envelope.sender == "a@github.com"

    def test_numeric_timestamp_coerced(self):
        envelope = WebhookEnvelope.model_validate(
            {"timestamp": 1700000000, "sender": "a@b.com", "subject": "s"}
        )
        assert envelope.timestamp == "1700000000"

    @pytest.mark.parametrize("missing", ["sender", "subject"])
    def test_required_fields(self, missing):
        payload = {"sender": "a@b.com", "subject": "s"}
        del payload[missing]
        with pytest.raises(ValidationError):
            WebhookEnvelope.model_validate(payload)

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            WebhookEnvelope.model_validate(["not", "an", "object"])


class TestTextBody:
    """Tests for body variant selection."""

    def _envelope(self, **bodies):
        return WebhookEnvelope.model_validate({"sender": "a@b.com", "subject": "s", **bodies})

    def test_body_plain_first(self):
        envelope = self._envelope(**{"body-plain": "plain", "stripped-text": "stripped"})
        assert envelope.text_body() == "plain"

    def test_stripped_text_second(self):
        envelope = self._envelope(**{"body-plain": "  ", "stripped-text": "stripped"})
        assert envelope.text_body() == "stripped"

    def test_generic_body(self):
        assert self._envelope(body="generic").text_body() == "generic"

    def test_html_fallback(self):
        envelope = self._envelope(**{"body-html": "<p>Code: <b>5544</b></p>"})
        assert envelope.text_body() == "Code: 5544"

    def test_no_body(self):
        assert self._envelope().text_body() == ""


class TestAuditPayload:
    """Tests for the stored audit copy."""

    def test_signature_removed(self):
        envelope = WebhookEnvelope.model_validate(
            {
                "timestamp": "1700000000",
                "token": "tok",
                "signature": "secret-signature",
                "sender": "a@b.com",
                "subject": "s",
                "body-plain": "Your code is 123456",
            }
        )
        audit = envelope.audit_payload()
        data = json.loads(audit)

        assert "signature" not in data
        assert "secret-signature" not in audit
        assert data["body-plain"] == "Your code is 123456"
        assert data["sender"] == "a@b.com"
