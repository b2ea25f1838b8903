"""Tests for model reply parsing and the Gemini client wrapper."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import ExtractionError
from src.services.otp_relay.model_client import (
    GeminiCodeModel,
    ReplyKind,
    build_prompt,
    parse_model_reply,
)


class TestParseModelReply:
    """Tests for the strict reply grammar."""

    @pytest.mark.parametrize("text", ["123456", "  482913\n", "1234", "12345678"])
    def test_code(self, text):
        reply = parse_model_reply(text)
        assert reply.kind is ReplyKind.CODE
        assert reply.code == text.strip()

    @pytest.mark.parametrize("text", ["NONE", "none", " NONE\n", "", None])
    def test_none_marker_and_empty(self, text):
        reply = parse_model_reply(text)
        assert reply.kind is ReplyKind.NONE
        assert reply.code is None

    @pytest.mark.parametrize(
        "text",
        [
            "123",
            "123456789",
            "The code is 123456",
            "12 34 56",
            "abc123",
            "NONE FOUND",
            "\u0661\u0662\u0663\u0664\u0665\u0666",
            "123456\nNONE",
        ],
    )
    def test_malformed(self, text):
        reply = parse_model_reply(text)
        assert reply.kind is ReplyKind.MALFORMED
        assert reply.code is None
        assert reply.raw == text.strip()


class TestBuildPrompt:
    """Tests for the extraction instruction."""

    def test_contains_email_fields_and_marker(self):
        prompt = build_prompt("Login code", "Your code is 111222", "a@github.com", "github")
        assert "Login code" in prompt
        assert "Your code is 111222" in prompt
        assert "a@github.com" in prompt
        assert "github" in prompt
        assert "NONE" in prompt

    def test_body_truncated(self):
        prompt = build_prompt("s", "x" * 20000, "a@b.com", "unknown")
        assert "x" * 8000 in prompt
        assert "x" * 8001 not in prompt


class TestGeminiCodeModel:
    """Tests for the Google GenAI wrapper."""

    def test_disabled_without_key(self):
        model = GeminiCodeModel(api_key=None)
        assert model.enabled is False

    @pytest.mark.asyncio
    async def test_complete_without_key_raises(self):
        with pytest.raises(ExtractionError):
            await GeminiCodeModel(api_key=None).complete("prompt")

    @pytest.mark.asyncio
    async def test_complete_returns_text(self):
        model = GeminiCodeModel(api_key=None, model_name="gemini-test")
        response = MagicMock()
        response.text = "654321"
        model.client = MagicMock()
        model.client.aio.models.generate_content = AsyncMock(return_value=response)

        assert model.enabled is True
        assert await model.complete("prompt") == "654321"

        kwargs = model.client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "prompt"
        assert kwargs["config"]["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_complete_empty_text(self):
        model = GeminiCodeModel(api_key=None)
        response = MagicMock()
        response.text = None
        model.client = MagicMock()
        model.client.aio.models.generate_content = AsyncMock(return_value=response)

        assert await model.complete("prompt") == ""
