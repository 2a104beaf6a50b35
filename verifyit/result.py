"""
Analysis Result — the canonical schema shared by every scoring path.

The local heuristic, the external AI provider and the merge engine all
produce an AnalysisResult. to_dict() renders the camelCase wire shape
consumed by the HTTP layer and the alerting collaborator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from verifyit.mode import ContentMode
from verifyit.verdict import Verdict

MAX_INDICATORS = 6

# --- Provenance tags ---
PROVIDER_LOCAL = "local-heuristic"
PROVIDER_GEMINI = "gemini-api"
PROVIDER_MERGED = "gemini-api+local-heuristic"
PROVIDER_FALLBACK = "local-heuristic-fallback"

# Wire key for each sub-score attribute
SUB_SCORE_KEYS = {
    "credibility": "credibilityScore",
    "suspicious": "suspiciousScore",
    "emotional": "emotionalScore",
    "structure": "structureScore",
    "source": "sourceScore",
}


def clamp_score(value, default: Optional[int] = None) -> Optional[int]:
    """
    Coerce a numeric-like value to an int in [0, 100].

    Accepts ints, floats and numeric strings ("72", "72.5", "72/100",
    "72%"). Booleans, non-finite numbers and anything unparseable
    return `default`.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        cleaned = value.strip().rstrip("%").split("/", 1)[0].strip()
        try:
            value = float(cleaned)
        except ValueError:
            return default
    if not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return max(0, min(100, int(round(value))))


@dataclass(frozen=True)
class Provenance:
    """Which path produced a result."""
    ai_provider: str
    ai_model: str


@dataclass
class AnalysisResult:
    score: int
    verdict: Verdict
    analysis: str
    credibility: int
    suspicious: int
    emotional: int
    structure: int
    source: int
    indicators: list[str]
    recommendations: list[str]
    content_type: ContentMode
    provenance: Provenance
    # Names of override rules that capped the score (local path only)
    overrides: list[str] = field(default_factory=list)

    @property
    def sub_scores(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in SUB_SCORE_KEYS}

    def to_dict(self) -> dict:
        data = {
            "score": self.score,
            "verdict": self.verdict.value,
            "analysis": self.analysis,
        }
        for name, key in SUB_SCORE_KEYS.items():
            data[key] = getattr(self, name)
        data.update({
            "indicators": list(self.indicators),
            "recommendations": list(self.recommendations),
            "contentType": self.content_type.value,
            "aiProvider": self.provenance.ai_provider,
            "aiModel": self.provenance.ai_model,
        })
        return data
