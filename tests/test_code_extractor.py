"""Tests for the two-stage code extractor."""

import asyncio

import pytest

from src.services.otp_relay import CodeExtractor, ExtractionStage


class TestPrimaryStage:
    """Tests for model-driven extraction."""

    @pytest.mark.asyncio
    async def test_happy_path(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("482913"))
        result = await extractor.extract_code(
            "Verify your sign-in", "Your verification code is 482913", "noreply@github.com"
        )

        assert result.success is True
        assert result.code == "482913"
        assert result.confidence == 0.95
        assert result.platform == "github"
        assert result.stage is ExtractionStage.MODEL

    @pytest.mark.asyncio
    async def test_prompt_sent_to_model(self, make_model_client):
        client = make_model_client("482913")
        extractor = CodeExtractor(model_client=client)
        await extractor.extract_code("Subject A", "Body B", "x@salesforce.com")

        prompt = client.complete.call_args.args[0]
        assert "Subject A" in prompt
        assert "Body B" in prompt
        assert "salesforce" in prompt

    @pytest.mark.asyncio
    async def test_model_code_skips_fallback(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("111111"))
        result = await extractor.extract_code("", "Your code: 222222", "a@b.com")
        assert result.code == "111111"
        assert result.stage is ExtractionStage.MODEL


class TestFallbackStage:
    """Tests for regex fallback after a failed or weak primary result."""

    @pytest.mark.asyncio
    async def test_no_code_reply_uses_fallback(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code("Sign in", "Your code: 775511", "a@b.com")

        assert result.success is True
        assert result.code == "775511"
        assert result.confidence == 0.7
        assert result.stage is ExtractionStage.FALLBACK
        assert "AI extraction failed (confidence: 0.0)" in result.reasoning
        assert "your_code" in result.reasoning

    @pytest.mark.asyncio
    async def test_malformed_reply_uses_fallback(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("I think it is 775511"))
        result = await extractor.extract_code("", "Your code: 775511", "a@b.com")

        assert result.success is True
        assert result.confidence == 0.7
        assert "confidence: 0.3" in result.reasoning

    @pytest.mark.asyncio
    async def test_malformed_reply_without_fallback_match(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("garbage"))
        result = await extractor.extract_code("Hi", "No digits", "a@b.com")

        assert result.success is False
        assert result.confidence == 0.3
        assert "garbage" in result.reasoning

    @pytest.mark.asyncio
    async def test_model_error_uses_fallback(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client(error=RuntimeError("boom")))
        result = await extractor.extract_code("", "Security code 093421", "a@b.com")

        assert result.success is True
        assert result.code == "093421"
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_model_error_without_fallback_match(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client(error=RuntimeError("boom")))
        result = await extractor.extract_code("Hello", "Nothing here", "a@b.com")

        assert result.success is False
        assert result.confidence == 0.0
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_model_timeout_uses_fallback(self, make_model_client):
        client = make_model_client()

        async def slow(prompt):
            await asyncio.sleep(5)
            return "123456"

        client.complete.side_effect = slow
        extractor = CodeExtractor(model_client=client, timeout_seconds=0.05)
        result = await extractor.extract_code("", "Your code: 775511", "a@b.com")

        assert result.code == "775511"
        assert result.stage is ExtractionStage.FALLBACK
        assert "timeout" in result.error

    @pytest.mark.asyncio
    async def test_disabled_model_goes_straight_to_fallback(self, make_model_client):
        client = make_model_client(enabled=False)
        extractor = CodeExtractor(model_client=client)
        result = await extractor.extract_code("", "Your code: 775511", "a@b.com")

        client.complete.assert_not_called()
        assert result.code == "775511"
        assert result.error == "model not configured"

    @pytest.mark.asyncio
    async def test_no_model_client(self):
        result = await CodeExtractor().extract_code("", "PIN = 4321", "a@b.com")
        assert result.success is True
        assert result.code == "4321"

    @pytest.mark.asyncio
    async def test_nothing_found(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code("Welcome", "Thanks for joining", "a@b.com")

        assert result.success is False
        assert result.code is None
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_weak_primary_below_threshold_runs_fallback(self, make_model_client):
        extractor = CodeExtractor(
            model_client=make_model_client("111111"), fallback_threshold=0.99
        )
        result = await extractor.extract_code("", "Your code: 222222", "a@b.com")
        assert result.code == "222222"
        assert result.stage is ExtractionStage.FALLBACK


class TestPlatformTag:
    """The platform always comes from sender/subject fingerprinting."""

    @pytest.mark.asyncio
    async def test_platform_kept_on_fallback(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code("Login", "Your code: 775511", "x@vinsolutions.com")
        assert result.platform == "vinsolutions"

    @pytest.mark.asyncio
    async def test_platform_on_failure(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code("Hi", "No code", "x@stripe.com")
        assert result.platform == "stripe"

    @pytest.mark.asyncio
    async def test_none_inputs_do_not_raise(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code(None, None, None)
        assert result.success is False
        assert result.platform == "unknown"

    @pytest.mark.asyncio
    async def test_non_ascii_digits_not_extracted(self, make_model_client):
        extractor = CodeExtractor(model_client=make_model_client("NONE"))
        result = await extractor.extract_code("Sign in", "Your code: ١٢٣٤٥٦", "a@b.com")
        assert result.success is False
        assert result.code is None
