"""Pattern matching utilities for OTP extraction.

This module provides the deterministic fallback stage of the extraction
pipeline: HTML-to-text conversion and an ordered list of named regex rules.
"""

import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import List, Optional, Pattern, Sequence

from loguru import logger


class HTMLTextExtractor(HTMLParser):
    """Extract plain text from HTML content."""

    def __init__(self):
        super().__init__()
        self.text = []
        self.in_script = False
        self.in_style = False

    def handle_starttag(self, tag, attrs):
        if tag.lower() == "script":
            self.in_script = True
        elif tag.lower() == "style":
            self.in_style = True

    def handle_endtag(self, tag):
        if tag.lower() == "script":
            self.in_script = False
        elif tag.lower() == "style":
            self.in_style = False

    def handle_data(self, data):
        if not self.in_script and not self.in_style:
            self.text.append(data)

    def get_text(self) -> str:
        return " ".join(part.strip() for part in self.text if part.strip())


def html_to_text(html: str) -> str:
    """Convert an HTML email body to plain text."""
    if not html:
        return ""
    extractor = HTMLTextExtractor()
    extractor.feed(html)
    extractor.close()
    return extractor.get_text()


@dataclass(frozen=True)
class ExtractionRule:
    """
    A named regex rule; group 1 of ``pattern`` is the candidate code.

    Patterns are compiled with ``re.ASCII`` so ``\\d`` only matches 0-9.
    """

    name: str
    pattern: str
    compiled: Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "compiled", re.compile(self.pattern, re.IGNORECASE | re.ASCII))

    def search(self, text: str) -> Optional[str]:
        match = self.compiled.search(text)
        return match.group(1) if match else None


@dataclass(frozen=True)
class RuleMatch:
    """Code found by a fallback rule."""

    rule: str
    code: str


# Priority order: keyword-adjacent groups first, bare digit groups last.
# A digit group never matches inside a longer run of digits.
FALLBACK_RULES: Sequence[ExtractionRule] = (
    ExtractionRule(
        "keyword_prefixed",
        r"(?:verification|security|access|login|auth|2fa|two.factor)\s*(?:code|pin)"
        r"[\s:]*(\d{4,8})(?!\d)",
    ),
    ExtractionRule("code_is", r"(?:code|pin)[\s:]*(?:is|=)[\s:]*(\d{4,8})(?!\d)"),
    ExtractionRule("your_code", r"your\s+(?:code|pin)[\s:]*(\d{4,8})(?!\d)"),
    ExtractionRule("code_label", r"\b(?:code|pin|otp|passcode)[\s:]+(\d{4,8})(?!\d)"),
    # NOTE: bare groups also match phone numbers, years and dates; the ordering
    # above only reduces how often that happens.
    ExtractionRule("bare_6_digit", r"(?<!\d)(\d{6})(?!\d)"),
    ExtractionRule("bare_4_digit", r"(?<!\d)(\d{4})(?!\d)"),
    ExtractionRule("bare_8_digit", r"(?<!\d)(\d{8})(?!\d)"),
)


class FallbackCodeMatcher:
    """Regex-based code extractor evaluating rules in priority order."""

    def __init__(self, rules: Optional[Sequence[ExtractionRule]] = None):
        """
        Initialize fallback matcher.

        Args:
            rules: Optional replacement rule list (evaluated in order)
        """
        self._rules: List[ExtractionRule] = list(FALLBACK_RULES if rules is None else rules)

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self._rules]

    def extract(self, subject: str, body: str) -> Optional[RuleMatch]:
        """
        Extract a code from subject and body; the first matching rule wins.

        Args:
            subject: Email subject
            body: Plain-text email body

        Returns:
            RuleMatch or None
        """
        text = f"{subject or ''} {body or ''}".strip()
        if not text:
            return None

        for rule in self._rules:
            code = rule.search(text)
            if code:
                logger.debug(f"Fallback rule '{rule.name}' matched")
                return RuleMatch(rule=rule.name, code=code)

        logger.debug("No fallback rule matched")
        return None
