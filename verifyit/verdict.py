"""
Verdict Classifier

Maps a final 0-100 trust score onto one of three verdict bands and
produces the fixed recommendation list for each band. Both are pure
functions: the same score always yields the same verdict, the same
(verdict, mode) pair always yields the same recommendations.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from verifyit.mode import ContentMode


class Verdict(str, Enum):
    HIGHLY_SUSPICIOUS = "HIGHLY SUSPICIOUS"
    PROCEED_WITH_CAUTION = "PROCEED WITH CAUTION"
    LIKELY_LEGITIMATE = "LIKELY LEGITIMATE"


# Band edges. 35 and 70 themselves belong to the middle band.
SUSPICIOUS_BELOW = 35
LEGITIMATE_ABOVE = 70


def classify_score(score: int) -> Verdict:
    """score < 35 → HIGHLY SUSPICIOUS, score > 70 → LIKELY LEGITIMATE, else caution."""
    if score < SUSPICIOUS_BELOW:
        return Verdict.HIGHLY_SUSPICIOUS
    if score > LEGITIMATE_ABOVE:
        return Verdict.LIKELY_LEGITIMATE
    return Verdict.PROCEED_WITH_CAUTION


def parse_verdict(value) -> Optional[Verdict]:
    """
    Accept a verdict from untrusted input.

    Tolerates case and underscore/space differences
    ("likely_legitimate", "Likely Legitimate"). Returns None for
    anything that is not one of the three bands.
    """
    if isinstance(value, Verdict):
        return value
    if not isinstance(value, str):
        return None
    cleaned = " ".join(value.replace("_", " ").replace("-", " ").split()).upper()
    for verdict in Verdict:
        if verdict.value == cleaned:
            return verdict
    return None


_TEXT_RECOMMENDATIONS: dict[Verdict, list[str]] = {
    Verdict.HIGHLY_SUSPICIOUS: [
        "Do not share this content without verification",
        "Check official sources and fact-checking websites",
        "Look for corroborating evidence from reliable outlets",
        "Be aware this may be deliberate misinformation",
    ],
    Verdict.LIKELY_LEGITIMATE: [
        "Content appears credible but verify important claims",
        "Cross-reference with additional trusted sources",
        "Check publication date for relevance",
        "Consider the source's reputation and expertise",
    ],
    Verdict.PROCEED_WITH_CAUTION: [
        "Exercise caution and verify key claims",
        "Look for multiple independent sources",
        "Check for potential conflicts of interest",
        "Consider seeking expert opinions on the topic",
    ],
}

_PHONE_RECOMMENDATIONS: dict[Verdict, list[str]] = {
    Verdict.HIGHLY_SUSPICIOUS: [
        "Do not call back, reply, or click any links in this message",
        "Never share OTPs, PINs, passwords, or card details",
        "Contact your bank or provider using the number on their official website",
        "Report the number to your telecom operator or cybercrime helpline",
    ],
    Verdict.LIKELY_LEGITIMATE: [
        "Message looks routine but confirm unexpected requests independently",
        "Use the official app or website instead of links in the message",
        "Never share OTPs or PINs even with genuine-looking senders",
        "Keep an eye on your account for unrecognised activity",
    ],
    Verdict.PROCEED_WITH_CAUTION: [
        "Verify the sender through an official channel before responding",
        "Avoid installing apps or granting screen access on request",
        "Do not make payments to claim prizes, refunds, or unblock services",
        "Block and report the number if the request seems unusual",
    ],
}


def recommendations_for(verdict: Verdict, mode: ContentMode = ContentMode.TEXT) -> list[str]:
    """Recommendation list for a verdict band, specialised by content mode."""
    table = _PHONE_RECOMMENDATIONS if mode == ContentMode.PHONE else _TEXT_RECOMMENDATIONS
    return list(table[verdict])
