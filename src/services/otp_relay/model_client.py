"""Primary extraction stage: text model client and strict reply parsing."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from loguru import logger

from src.constants import OTP, Extraction
from src.core.exceptions import ExtractionError

_CODE_RE = re.compile(OTP.CODE_PATTERN)


class ReplyKind(Enum):
    """Outcome of parsing a model reply."""

    CODE = "code"
    NONE = "none"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ModelReply:
    """Tagged model reply: a bare code, the no-code marker, or anything else."""

    kind: ReplyKind
    raw: str
    code: Optional[str] = None


def parse_model_reply(text: Optional[str]) -> ModelReply:
    """
    Parse a model reply against the response grammar.

    Grammar (surrounding whitespace ignored):
        reply := DIGITS{4,8} | "NONE"

    An empty reply counts as "no code found".

    Args:
        text: Raw model output

    Returns:
        ModelReply tagged CODE, NONE or MALFORMED
    """
    raw = (text or "").strip()
    if not raw or raw.upper() == Extraction.NO_CODE_MARKER:
        return ModelReply(kind=ReplyKind.NONE, raw=raw)
    if _CODE_RE.fullmatch(raw):
        return ModelReply(kind=ReplyKind.CODE, raw=raw, code=raw)
    return ModelReply(kind=ReplyKind.MALFORMED, raw=raw)


def build_prompt(subject: str, body: str, sender: str, platform: str) -> str:
    """
    Build the constrained extraction instruction.

    Args:
        subject: Email subject
        body: Plain-text email body (truncated before sending)
        sender: Email sender
        platform: Identified platform tag

    Returns:
        Prompt text
    """
    body = body[: Extraction.MAX_PROMPT_BODY_CHARS]
    return f"""You are an expert at extracting 2FA verification codes from emails.

Email Details:
- From: {sender}
- Subject: {subject}
- Platform: {platform}
- Body: {body}

Task: Extract the 2FA/verification code from this email.

Rules:
1. Look for numeric codes of 4 to 8 digits
2. Common patterns: "code is 123456", "verification code: 123456", "your code 123456"
3. Ignore phone numbers, dates, prices, order numbers and other non-code numbers
4. Return ONLY the numeric code, nothing else
5. If no code is found, return {Extraction.NO_CODE_MARKER}

Response format: just the numeric code (e.g. 123456) or {Extraction.NO_CODE_MARKER}"""


class CodeModelClient(Protocol):
    """Text model used by the primary extraction stage."""

    @property
    def enabled(self) -> bool: ...

    async def complete(self, prompt: str) -> str:
        """Return the raw text reply for ``prompt``; raise on transport failure."""
        ...


class GeminiCodeModel:
    """Primary extraction model backed by the Google GenAI SDK."""

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = Extraction.MODEL_NAME,
        temperature: float = Extraction.MODEL_TEMPERATURE,
        max_output_tokens: int = Extraction.MODEL_MAX_OUTPUT_TOKENS,
    ):
        """
        Initialize the model client.

        Args:
            api_key: Google GenAI API key; the client stays disabled without one
            model_name: Model name
            temperature: Sampling temperature (low for deterministic output)
            max_output_tokens: Output budget; a code needs only a few tokens
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.client = None

        if api_key:
            from google import genai

            self.client = genai.Client(api_key=api_key)
            logger.info(f"Primary code extraction enabled (model: {self.model_name})")
        else:
            logger.warning("GEMINI_API_KEY not set, primary extraction disabled (regex only)")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def complete(self, prompt: str) -> str:
        """
        Send ``prompt`` to the model and return its text.

        Raises:
            ExtractionError: If the client is disabled
        """
        if self.client is None:
            raise ExtractionError("Extraction model not configured")

        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config={
                "temperature": self.temperature,
                "max_output_tokens": self.max_output_tokens,
            },
        )
        return response.text or ""
