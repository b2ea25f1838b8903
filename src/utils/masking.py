"""Utility functions for masking sensitive data in logs and outputs."""

from typing import Any, Optional


def mask_email(email: str) -> str:
    """
    Mask email address for logging purposes.

    Example: user@example.com -> u***@e***.com

    Args:
        email: Email address to mask

    Returns:
        Masked email address
    """
    if not email or "@" not in email:
        return "***"

    # Display names like "Acme <no-reply@acme.com>"
    if "<" in email and email.rstrip().endswith(">"):
        email = email[email.rindex("<") + 1 : -1].strip()

    parts = email.split("@")
    if len(parts) != 2:
        return "***"

    local, domain = parts
    masked_local = local[0] + "***" if local else "***"

    domain_parts = domain.split(".")
    if len(domain_parts) >= 2 and domain_parts[0]:
        masked_domain = domain_parts[0][0] + "***." + ".".join(domain_parts[1:])
    else:
        masked_domain = "***"

    return f"{masked_local}@{masked_domain}"


def mask_code(code: Optional[str]) -> str:
    """
    Mask a verification code, keeping the first two digits.

    Example: 482913 -> 48****

    Args:
        code: Verification code to mask

    Returns:
        Masked code
    """
    if not code:
        return "****"
    if len(code) <= 2:
        return "*" * len(code)
    return code[:2] + "*" * (len(code) - 2)


def truncate_token(token: Any, keep: int = 8) -> str:
    """
    Truncate a webhook token for diagnostics.

    Args:
        token: Token value (non-strings are rendered as a placeholder)
        keep: Number of leading characters to keep

    Returns:
        Truncated token followed by "..."
    """
    if not isinstance(token, str) or not token:
        return "<missing>"
    return token[:keep] + "..."

