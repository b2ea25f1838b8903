"""Make untrusted email text safe to write into log lines."""

import re
from typing import Any

# Terminal escape sequences, then C0/C1 control characters
_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
# Anything a log viewer may render as a line break
_LINE_BREAK_RE = re.compile(r"[\r\n\u2028\u2029]+")


def sanitize_log_value(value: Any, max_length: int = 100) -> str:
    """
    Flatten a value received from the network into a single log-safe line.

    Senders and subjects arrive from Mailgun untouched. Escape sequences and
    control characters are dropped, line breaks become single spaces (so a
    subject cannot forge a second log entry) and the result is truncated.

    Args:
        value: Value to sanitize; non-strings are logged by ``repr``
        max_length: Maximum length of the result, including "..."

    Returns:
        Single-line string

    Examples:
        >>> sanitize_log_value("Your code\\r\\nis ready")
        'Your code is ready'
    """
    if value is None:
        return "None"
    text = value if isinstance(value, str) else repr(value)
    if not text:
        return "''"

    text = _LINE_BREAK_RE.sub(" ", _ESCAPE_RE.sub("", text)).strip()
    if len(text) > max_length:
        text = text[: max(max_length - 3, 0)] + "..."
    return text
