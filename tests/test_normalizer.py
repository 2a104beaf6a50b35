"""
Tests for result normalization: numeric coercion, documented defaults,
verdict validation, direction repair, indicator fallback, regenerated
recommendations and idempotence.
"""

import math

import pytest

from verifyit.heuristics import heuristic_scorer
from verifyit.mode import ContentMode
from verifyit.normalizer import extract_key_findings, normalize
from verifyit.result import MAX_INDICATORS, PROVIDER_GEMINI, clamp_score
from verifyit.verdict import Verdict, recommendations_for

MODEL = "gemini-test"


def _norm(raw, content_type=None):
    return normalize(raw, PROVIDER_GEMINI, MODEL, content_type)


class TestClampScore:

    @pytest.mark.parametrize("value,expected", [
        (72, 72),
        (72.6, 73),
        ("72", 72),
        ("72%", 72),
        ("72/100", 72),
        (150, 100),
        (-5, 0),
    ])
    def test_coercion(self, value, expected):
        assert clamp_score(value) == expected

    @pytest.mark.parametrize("value", [None, True, "high", math.nan, math.inf, [], {}])
    def test_falls_back_to_default(self, value):
        assert clamp_score(value, 50) == 50


class TestDefaults:

    def test_empty_input(self):
        result = _norm({})
        assert result.score == 50
        assert result.verdict == Verdict.PROCEED_WITH_CAUTION
        assert result.suspicious == 50
        assert result.credibility == 50
        assert result.emotional == 50
        assert result.structure == 55
        assert result.source == 50
        assert result.content_type == ContentMode.TEXT
        assert result.analysis
        assert result.indicators

    def test_defaults_derive_from_score(self):
        result = _norm({"score": 80})
        assert result.suspicious == 20
        assert result.credibility == 80
        assert result.emotional == 20

    def test_non_mapping_treated_as_empty(self):
        assert _norm("not a dict").score == 50

    def test_provenance(self):
        result = _norm({"score": 60})
        assert result.provenance.ai_provider == PROVIDER_GEMINI
        assert result.provenance.ai_model == MODEL


class TestFieldAliases:

    def test_camel_case(self):
        assert _norm({"credibilityScore": 77}).credibility == 77

    def test_snake_case(self):
        assert _norm({"credibility_score": 77}).credibility == 77

    def test_bare_name(self):
        assert _norm({"structure": 12}).structure == 12

    def test_content_type_from_payload(self):
        assert _norm({"contentType": "phone"}).content_type == ContentMode.PHONE

    def test_content_type_fallback_argument(self):
        assert _norm({}, ContentMode.PHONE).content_type == ContentMode.PHONE

    def test_invalid_content_type_ignored(self):
        assert _norm({"contentType": "fax"}, ContentMode.PHONE).content_type == ContentMode.PHONE


class TestVerdict:

    def test_valid_verdict_kept(self):
        result = _norm({"score": 50, "verdict": "likely_legitimate"})
        assert result.verdict == Verdict.LIKELY_LEGITIMATE

    def test_invalid_verdict_derived_from_score(self):
        assert _norm({"score": 20, "verdict": "MAYBE"}).verdict == Verdict.HIGHLY_SUSPICIOUS
        assert _norm({"score": 90}).verdict == Verdict.LIKELY_LEGITIMATE


class TestDirectionRepair:

    def test_suspicious_with_high_score_inverted(self):
        result = _norm({"score": 90, "verdict": "HIGHLY SUSPICIOUS"})
        assert result.score == 10
        assert result.verdict == Verdict.HIGHLY_SUSPICIOUS
        assert result.suspicious == 90

    def test_legitimate_with_low_score_inverted(self):
        result = _norm({"score": 20, "verdict": "LIKELY LEGITIMATE"})
        assert result.score == 80

    @pytest.mark.parametrize("score", [60, 65])
    def test_moderate_score_not_inverted(self, score):
        assert _norm({"score": score, "verdict": "HIGHLY SUSPICIOUS"}).score == score

    def test_boundary_35_not_inverted(self):
        assert _norm({"score": 35, "verdict": "LIKELY LEGITIMATE"}).score == 35


class TestIndicatorsAndRecommendations:

    def test_indicators_capped(self):
        result = _norm({"indicators": [f"finding {i}" for i in range(10)]})
        assert len(result.indicators) == MAX_INDICATORS
        assert result.indicators[0] == "finding 0"

    def test_blank_indicators_dropped(self):
        result = _norm({"indicators": ["", "  ", None, "real"]})
        assert result.indicators == ["real"]

    def test_empty_indicators_extracted_from_analysis(self):
        result = _norm({
            "analysis": "The message relies on urgency and emotional manipulation.",
            "indicators": [],
        })
        assert "⚠ Urgency pressure tactics found" in result.indicators
        assert "⚠ Emotional manipulation detected" in result.indicators

    def test_recommendations_never_taken_from_input(self):
        result = _norm({"score": 10, "recommendations": ["Wire the money today"]})
        assert "Wire the money today" not in result.recommendations
        assert result.recommendations == recommendations_for(Verdict.HIGHLY_SUSPICIOUS)

    def test_recommendations_follow_mode(self):
        result = _norm({"score": 10, "contentType": "phone"})
        assert result.recommendations == recommendations_for(
            Verdict.HIGHLY_SUSPICIOUS, ContentMode.PHONE,
        )


class TestIdempotence:

    @pytest.mark.parametrize("raw", [
        {},
        {"score": 90, "verdict": "HIGHLY SUSPICIOUS"},
        {"score": "42%", "indicators": ["a", "b"], "contentType": "phone"},
        {"score": 75, "verdict": "LIKELY LEGITIMATE", "credibilityScore": 88,
         "analysis": "Balanced and sourced reporting."},
    ])
    def test_normalize_twice(self, raw):
        once = _norm(raw)
        twice = _norm(once)
        assert twice.to_dict() == once.to_dict()

    def test_local_result_round_trip(self):
        local = heuristic_scorer.analyze("Your SIM will be blocked. Share OTP immediately.")
        again = normalize(local, local.provenance.ai_provider, local.provenance.ai_model)
        assert again.to_dict() == local.to_dict()


class TestExtractKeyFindings:

    def test_multiple_findings(self):
        findings = extract_key_findings(
            "Credible sourcing, but some misleading framing and an unverified link."
        )
        assert "✓ Shows credible source patterns" in findings
        assert "⚠ Potential bias or misleading content" in findings
        assert "⚠ Unverified claims present" in findings

    def test_nothing_found(self):
        assert extract_key_findings("Nothing to see.") == ["ℹ Analysis completed - review full report"]

    def test_capped(self):
        text = ("credible fact emotional misleading unverified urgent otp link")
        assert len(extract_key_findings(text)) == MAX_INDICATORS
