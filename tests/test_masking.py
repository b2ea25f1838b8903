"""Tests for masking and log sanitization utilities."""

import pytest

from src.utils.log_sanitizer import sanitize_log_value
from src.utils.masking import mask_code, mask_email, truncate_token


class TestMaskEmail:
    """Tests for email masking."""

    def test_mask_standard_email(self):
        assert mask_email("user@example.com") == "u***@e***.com"

    def test_mask_subdomain_email(self):
        assert mask_email("user@mail.example.com") == "u***@m***.example.com"

    def test_mask_display_name(self):
        assert mask_email("GitHub <noreply@github.com>") == "n***@g***.com"

    @pytest.mark.parametrize("value", ["notanemail", "", "a@b@c.com"])
    def test_mask_invalid(self, value):
        assert mask_email(value) == "***"


class TestMaskCode:
    """Tests for verification code masking."""

    def test_mask_six_digits(self):
        assert mask_code("482913") == "48****"

    def test_mask_eight_digits(self):
        assert mask_code("12345678") == "12******"

    def test_mask_short(self):
        assert mask_code("12") == "**"

    def test_mask_none(self):
        assert mask_code(None) == "****"


class TestTruncateToken:
    """Tests for webhook token truncation."""

    def test_truncate(self):
        assert truncate_token("abcdefghijklmnop") == "abcdefgh..."

    @pytest.mark.parametrize("value", [None, "", 12345])
    def test_missing(self, value):
        assert truncate_token(value) == "<missing>"


class TestSanitizeLogValue:
    """Tests for log injection protection."""

    def test_removes_newlines(self):
        assert sanitize_log_value("subject\nFAKE LOG LINE") == "subject FAKE LOG LINE"

    def test_removes_ansi(self):
        assert sanitize_log_value("\x1b[31mred\x1b[0m") == "red"

    def test_truncates(self):
        assert sanitize_log_value("x" * 200, max_length=10) == "xxxxxxx..."

    def test_none(self):
        assert sanitize_log_value(None) == "None"
