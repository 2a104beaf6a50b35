"""
Result Normalizer

Coerces a partially-populated or externally-sourced result into the
canonical AnalysisResult schema:

  - every numeric field becomes an int in [0, 100], with documented
    defaults for missing or non-finite values
  - the verdict is validated, or derived from the score
  - a verdict/score direction mismatch is repaired by inverting the score
  - indicators fall back to findings extracted from the analysis text
  - recommendations are always regenerated, never taken from input

normalize() is idempotent on its own output.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional, Union

from verifyit.mode import ContentMode
from verifyit.result import (
    MAX_INDICATORS,
    SUB_SCORE_KEYS,
    AnalysisResult,
    Provenance,
    clamp_score,
)
from verifyit.verdict import Verdict, classify_score, parse_verdict, recommendations_for

DEFAULT_SCORE = 50
DEFAULT_STRUCTURE = 55
DEFAULT_SOURCE = 50

# Scores past these bounds contradict the stated verdict
_SUSPICIOUS_MAX_CONSISTENT = 65
_LEGITIMATE_MIN_CONSISTENT = 35

_DEFAULT_ANALYSIS = {
    Verdict.HIGHLY_SUSPICIOUS: "The content shows strong signs of scam or misinformation patterns.",
    Verdict.PROCEED_WITH_CAUTION: "The content shows mixed signals and should be verified independently.",
    Verdict.LIKELY_LEGITIMATE: "The content shows patterns typical of credible, legitimate information.",
}

# (keywords, finding) pairs scanned over free-form analysis text
_FINDING_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("credible", "reliable"), "✓ Shows credible source patterns"),
    (("fact", "evidence"), "✓ Contains verifiable claims"),
    (("emotional", "manipul"), "⚠ Emotional manipulation detected"),
    (("misleading", "bias"), "⚠ Potential bias or misleading content"),
    (("unverified", "unsupported"), "⚠ Unverified claims present"),
    (("urgent", "urgency", "pressure"), "⚠ Urgency pressure tactics found"),
    (("otp", "password", "credential", "pin "), "⚠ Requests sensitive credentials"),
    (("link", "url"), "⚠ Contains links that should be checked"),
)


def extract_key_findings(text: str) -> list[str]:
    """Derive short labeled findings from free-form analysis text."""
    lowered = (text or "").lower()
    findings = [
        finding
        for keywords, finding in _FINDING_KEYWORDS
        if any(k in lowered for k in keywords)
    ]
    if not findings:
        return ["ℹ Analysis completed - review full report"]
    return findings[:MAX_INDICATORS]


def _lookup(raw: Mapping, *keys: str):
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _sub_score_value(raw: Mapping, name: str):
    wire = SUB_SCORE_KEYS[name]
    snake = f"{name}_score"
    return _lookup(raw, wire, snake, name)


def _clean_indicators(value) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    cleaned = [str(item).strip() for item in value if item is not None and str(item).strip()]
    return cleaned[:MAX_INDICATORS]


def _parse_mode(value) -> Optional[ContentMode]:
    if isinstance(value, ContentMode):
        return value
    if isinstance(value, str):
        try:
            return ContentMode(value.strip().lower())
        except ValueError:
            return None
    return None


def normalize(
    raw: Union[Mapping, AnalysisResult],
    provider: str,
    model: str,
    content_type: Optional[ContentMode] = None,
) -> AnalysisResult:
    """
    Coerce `raw` into an AnalysisResult.

    Args:
        raw: A result-shaped mapping (camelCase or snake_case keys) or an
            existing AnalysisResult.
        provider: Provenance provider tag for the result.
        model: Provenance model identifier.
        content_type: Mode to use when `raw` does not state a valid one.
    """
    if isinstance(raw, AnalysisResult):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}

    score = clamp_score(raw.get("score"), DEFAULT_SCORE)

    verdict = parse_verdict(raw.get("verdict")) or classify_score(score)

    # Repair a risk-vs-trust direction mismatch against the stated verdict
    if verdict == Verdict.HIGHLY_SUSPICIOUS and score > _SUSPICIOUS_MAX_CONSISTENT:
        score = 100 - score
    elif verdict == Verdict.LIKELY_LEGITIMATE and score < _LEGITIMATE_MIN_CONSISTENT:
        score = 100 - score

    suspicious = clamp_score(_sub_score_value(raw, "suspicious"), 100 - score)
    credibility = clamp_score(_sub_score_value(raw, "credibility"), score)
    emotional = clamp_score(_sub_score_value(raw, "emotional"), suspicious)
    structure = clamp_score(_sub_score_value(raw, "structure"), DEFAULT_STRUCTURE)
    source = clamp_score(_sub_score_value(raw, "source"), DEFAULT_SOURCE)

    analysis = raw.get("analysis")
    if not isinstance(analysis, str) or not analysis.strip():
        analysis = _DEFAULT_ANALYSIS[verdict]
    analysis = analysis.strip()

    indicators = _clean_indicators(raw.get("indicators"))
    if not indicators:
        indicators = extract_key_findings(analysis)

    mode = (
        _parse_mode(_lookup(raw, "contentType", "content_type"))
        or content_type
        or ContentMode.TEXT
    )

    return AnalysisResult(
        score=score,
        verdict=verdict,
        analysis=analysis,
        credibility=credibility,
        suspicious=suspicious,
        emotional=emotional,
        structure=structure,
        source=source,
        indicators=indicators,
        recommendations=recommendations_for(verdict, mode),
        content_type=mode,
        provenance=Provenance(ai_provider=provider, ai_model=model),
    )
