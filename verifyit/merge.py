"""
Merge Engine

Combines a local heuristic result with an external AI result into a
single verdict. The external result must first pass is_usable(); the
merge then takes weighted averages of every sub-score, blends a
trust composite with the raw score, and applies two sanity overrides
so a confident local call is never flipped outright by the model.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Union

from verifyit.result import (
    PROVIDER_MERGED,
    AnalysisResult,
    Provenance,
    clamp_score,
)
from verifyit.verdict import Verdict, classify_score, parse_verdict, recommendations_for

MIN_ANALYSIS_LENGTH = 20

# (local weight, external weight)
EMOTION_WEIGHTS = (0.3, 0.7)   # credibility, suspicious, emotional
FORM_WEIGHTS = (0.4, 0.6)      # structure, source
SCORE_WEIGHTS = (0.35, 0.65)

# Trust composite: credibility, source, structure
COMPOSITE_WEIGHTS = (0.7, 0.2, 0.1)
# Final blend: composite, raw score
BLEND_WEIGHTS = (0.4, 0.6)

SCAM_CAP = 30
LEGIT_FLOOR = 70

_LEAKED_JSON = re.compile(r'"score"\s*:')


def is_usable(raw: Union[Mapping, AnalysisResult, None]) -> bool:
    """
    Gate for merging an external result.

    Usable means: a recognised verdict, at least one indicator, and an
    analysis string that is substantive and not a leaked JSON fragment.
    """
    if raw is None:
        return False
    if isinstance(raw, AnalysisResult):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        return False

    if parse_verdict(raw.get("verdict")) is None:
        return False

    indicators = raw.get("indicators")
    if not isinstance(indicators, (list, tuple)) or not indicators:
        return False

    analysis = raw.get("analysis")
    if not isinstance(analysis, str):
        return False
    analysis = analysis.strip()
    if len(analysis) < MIN_ANALYSIS_LENGTH:
        return False
    if _LEAKED_JSON.search(analysis):
        return False
    return True


def _blend(local: int, external: int, weights: tuple[float, float]) -> float:
    return local * weights[0] + external * weights[1]


def _local_says_scam(local: AnalysisResult) -> bool:
    return (
        local.score <= 25
        or local.verdict == Verdict.HIGHLY_SUSPICIOUS
        or local.suspicious >= 75
    )


def _local_says_legit(local: AnalysisResult) -> bool:
    return (
        local.score >= 80
        or local.verdict == Verdict.LIKELY_LEGITIMATE
        or local.credibility >= 75
    )


def merge_results(
    local: AnalysisResult,
    external: AnalysisResult,
    model: str,
) -> AnalysisResult:
    """
    Merge a local heuristic result with a normalized external result.

    Both inputs are expected to be normalized. The merged result keeps the
    local content type, takes analysis and indicators from the external
    result, and regenerates recommendations for the merged verdict.
    """
    credibility = _blend(local.credibility, external.credibility, EMOTION_WEIGHTS)
    suspicious = _blend(local.suspicious, external.suspicious, EMOTION_WEIGHTS)
    emotional = _blend(local.emotional, external.emotional, EMOTION_WEIGHTS)
    structure = _blend(local.structure, external.structure, FORM_WEIGHTS)
    source = _blend(local.source, external.source, FORM_WEIGHTS)
    raw_score = _blend(local.score, external.score, SCORE_WEIGHTS)

    w_cred, w_source, w_structure = COMPOSITE_WEIGHTS
    composite = credibility * w_cred + source * w_source + structure * w_structure
    w_composite, w_raw = BLEND_WEIGHTS
    score = clamp_score(composite * w_composite + raw_score * w_raw, 50)

    # A confident local call bounds how far the model can move the score
    if _local_says_scam(local) and external.score >= 75:
        score = min(score, SCAM_CAP)
    if _local_says_legit(local) and external.score <= 25:
        score = max(score, LEGIT_FLOOR)

    verdict = classify_score(score)

    return AnalysisResult(
        score=score,
        verdict=verdict,
        analysis=external.analysis,
        credibility=clamp_score(credibility, 0),
        suspicious=clamp_score(suspicious, 0),
        emotional=clamp_score(emotional, 0),
        structure=clamp_score(structure, 0),
        source=clamp_score(source, 0),
        indicators=list(external.indicators),
        recommendations=recommendations_for(verdict, local.content_type),
        content_type=local.content_type,
        provenance=Provenance(ai_provider=PROVIDER_MERGED, ai_model=model),
        overrides=list(local.overrides),
    )
