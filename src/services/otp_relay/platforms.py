"""Platform identification from email sender and subject."""

from typing import Dict, Mapping, Optional, Tuple

from src.constants import OTP

# Ordered: the first platform with a matching fingerprint wins
PLATFORM_FINGERPRINTS: Dict[str, Tuple[str, ...]] = {
    "vinsolutions": ("vinsolutions", "coxautoinc"),
    "salesforce": ("salesforce", "force.com"),
    "hubspot": ("hubspot",),
    "microsoft": ("microsoft", "outlook", "office365"),
    "google": ("google", "gmail"),
    "facebook": ("facebook", "meta"),
    "linkedin": ("linkedin",),
    "twitter": ("twitter", "x.com"),
    "github": ("github",),
    "aws": ("amazon", "aws"),
    "stripe": ("stripe",),
}


def identify_platform(
    sender: Optional[str],
    subject: Optional[str],
    fingerprints: Optional[Mapping[str, Tuple[str, ...]]] = None,
) -> str:
    """
    Match sender/subject substrings (case-insensitive) against known fingerprints.

    Args:
        sender: Envelope sender
        subject: Envelope subject
        fingerprints: Optional replacement table (platform -> substrings)

    Returns:
        Platform tag, or "unknown" if nothing matches
    """
    table = PLATFORM_FINGERPRINTS if fingerprints is None else fingerprints
    sender_lower = (sender or "").lower()
    subject_lower = (subject or "").lower()

    for platform, patterns in table.items():
        for pattern in patterns:
            if pattern in sender_lower or pattern in subject_lower:
                return platform

    return OTP.UNKNOWN_PLATFORM
