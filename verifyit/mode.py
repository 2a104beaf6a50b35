"""
Mode Detector — text vs. phone/SMS triage.

A cheap structural heuristic that decides which rule table scores
the input. Misclassification is tolerated; non-determinism is not.
detect_mode() is total over strings and always returns a mode.
"""

from __future__ import annotations

import re
from enum import Enum


class ContentMode(str, Enum):
    TEXT = "text"
    PHONE = "phone"


SHORT_MESSAGE_LIMIT = 280

# Whole input is just a phone number: digits, spaces, + ( ) -
_PHONE_SHAPED = re.compile(r"^[\d\s+()\-]{7,24}$")
_MIN_PHONE_DIGITS = 8
_MAX_PHONE_DIGITS = 15

_LONG_DIGIT_RUN = re.compile(r"(?<!\d)\+?\d(?:[\s\-]?\d){9,14}(?!\d)")

_PHONE_KEYWORDS = re.compile(
    r"\b(?:call(?:s|ed|ing)?|whatsapp|missed\s+call|otp|verification\s+code|"
    r"kyc|upi|bank|sim|telecom)\b",
    re.IGNORECASE,
)

_SCAM_KEYWORDS = re.compile(
    r"\b(?:urgent|blocked|suspended|prize|lottery|refund|claim|click|link|"
    r"verify\s+now|account\s+locked|pay\s+now|remote\s+access|screen\s+share)\b",
    re.IGNORECASE,
)


def detect_mode(text: str) -> ContentMode:
    """Classify input as TEXT or PHONE content."""
    stripped = (text or "").strip()
    if not stripped:
        return ContentMode.TEXT

    if _PHONE_SHAPED.match(stripped):
        digits = sum(ch.isdigit() for ch in stripped)
        if _MIN_PHONE_DIGITS <= digits <= _MAX_PHONE_DIGITS:
            return ContentMode.PHONE

    has_phone_token = bool(
        _LONG_DIGIT_RUN.search(stripped) or _PHONE_KEYWORDS.search(stripped)
    )
    if has_phone_token:
        if len(stripped) <= SHORT_MESSAGE_LIMIT or _SCAM_KEYWORDS.search(stripped):
            return ContentMode.PHONE

    return ContentMode.TEXT
