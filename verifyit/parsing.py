"""
Structured-output extraction for free-form model replies.

Models asked for JSON do not always return clean JSON: replies arrive
wrapped in markdown fences, prefixed with prose, carrying trailing
commas, or as plain sentences that merely mention a score. Each
strategy below takes the raw reply and returns a dict or None.
extract_json() runs them in order and returns the first hit.
"""

from __future__ import annotations

import json
import re
from typing import Callable, Optional

from verifyit.logging import get_logger
from verifyit.normalizer import extract_key_findings

logger = get_logger("parsing")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_SCORE_MENTION = re.compile(
    r"(?:score|rating)\s*[\"']?\s*[:=]\s*(\d{1,3})", re.IGNORECASE
)


def _loads_object(candidate: str) -> Optional[dict]:
    try:
        parsed = json.loads(candidate)
    except (ValueError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_direct(text: str) -> Optional[dict]:
    """The whole reply is a JSON object."""
    return _loads_object(text.strip())


def parse_fenced(text: str) -> Optional[dict]:
    """A ```json fenced block inside prose."""
    for match in _FENCED_BLOCK.finditer(text):
        parsed = _loads_object(match.group(1).strip())
        if parsed is not None:
            return parsed
    return None


def parse_brace_slice(text: str) -> Optional[dict]:
    """Outermost {...} span, retried once with trailing commas removed."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    candidate = text[start:end + 1]
    parsed = _loads_object(candidate)
    if parsed is None:
        parsed = _loads_object(_TRAILING_COMMA.sub(r"\1", candidate))
    return parsed


def parse_score_mention(text: str) -> Optional[dict]:
    """
    Last resort for prose replies: pull a stated score, infer a verdict
    and derive indicators from the wording.

    Returns None when the reply never states a score.
    """
    match = _SCORE_MENTION.search(text)
    if not match:
        return None
    score = min(100, int(match.group(1)))
    lowered = text.lower()

    if "suspicious" in lowered or "misleading" in lowered or score < 30:
        verdict = "HIGHLY SUSPICIOUS"
    elif "legitimate" in lowered or "credible" in lowered or score > 75:
        verdict = "LIKELY LEGITIMATE"
    else:
        verdict = "PROCEED WITH CAUTION"

    return {
        "score": score,
        "verdict": verdict,
        "analysis": text.strip()[:500],
        "indicators": extract_key_findings(text),
    }


STRATEGIES: tuple[Callable[[str], Optional[dict]], ...] = (
    parse_direct,
    parse_fenced,
    parse_brace_slice,
    parse_score_mention,
)


def extract_json(text: str) -> Optional[dict]:
    """Run every extraction strategy in order; None if all of them miss."""
    if not isinstance(text, str) or not text.strip():
        return None
    for strategy in STRATEGIES:
        parsed = strategy(text)
        if parsed is not None:
            if strategy is not parse_direct:
                logger.debug("Recovered structured reply via %s", strategy.__name__)
            return parsed
    return None
