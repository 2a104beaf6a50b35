"""
Heuristic Scorer — deterministic local analysis.

Scores a text against the rule tables for its content mode:

  1. Five independent sub-scores (0-100), each from its own rule table
     plus structural adjustments (capitalisation, punctuation,
     paragraphing, vocabulary, URLs and dates)
  2. A mode-specific weighted blend into the base score
  3. An ordered override cascade that caps known scam archetypes
  4. Verdict, indicators, explanation and recommendations

Zero API cost. Same input, same output.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from verifyit.mode import ContentMode, detect_mode
from verifyit.result import (
    MAX_INDICATORS,
    PROVIDER_LOCAL,
    AnalysisResult,
    Provenance,
)
from verifyit.rules import (
    FINAL_WEIGHTS,
    MODE_RULES,
    OVERRIDES,
    RULESET_VERSION,
    ModeRules,
    OverrideRule,
    ScoreWeights,
)
from verifyit.verdict import Verdict, classify_score, recommendations_for

logger = logging.getLogger(__name__)

LOCAL_MODEL = f"verifyit-heuristic-{RULESET_VERSION}"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_WORD = re.compile(r"\b\w+\b")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_URL = re.compile(r"https?://[^\s]+|www\.[^\s]+", re.IGNORECASE)
_DATE = re.compile(
    r"\b(?:19|20)\d{2}\b|\b(?:january|february|march|april|may|june|july|august|"
    r"september|october|november|december)\b",
    re.IGNORECASE,
)
_PROPER_NOUN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")


def _clamp(value: float) -> int:
    return max(0, min(100, int(round(value))))


class TextSignals:
    """Structural measurements taken once per input and shared by the evaluators."""

    def __init__(self, text: str):
        self.original = text
        self.lowered = text.lower()
        self.sentences = [s for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) > 10]
        self.words = _WORD.findall(self.lowered)
        self.word_count = len(self.words)
        self.paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if len(p.strip()) > 50]
        self.exclamations = text.count("!")
        self.questions = text.count("?")
        uppercase = sum(1 for ch in text if "A" <= ch <= "Z")
        self.caps_ratio = uppercase / max(len(text), 1)
        self.has_url = bool(_URL.search(text))
        self.has_date = bool(_DATE.search(text))
        self.proper_nouns = len(_PROPER_NOUN.findall(text))

    @property
    def avg_sentence_length(self) -> float:
        return self.word_count / max(len(self.sentences), 1)

    @property
    def vocabulary_ratio(self) -> float:
        if not self.word_count:
            return 0.0
        return len(set(self.words)) / self.word_count


@dataclass
class ScoreCard:
    """Every intermediate value behind one heuristic verdict."""
    mode: ContentMode
    credibility: int
    suspicious: int
    emotional: int
    structure: int
    source: int
    base_score: int
    score: int
    word_count: int = 0
    overrides: list[str] = field(default_factory=list)
    matched: dict[str, list[str]] = field(default_factory=dict)


# ============================================================
# SUB-SCORE EVALUATORS
# ============================================================

def _text_subscores(rules: ModeRules, s: TextSignals) -> dict[str, int]:
    suspicious = rules.suspicious.total(s.lowered)
    if s.caps_ratio > 0.10:
        suspicious += 15
    if s.exclamations >= 2:
        suspicious += 12
    if s.exclamations > 5:
        suspicious += 10

    credibility = rules.credibility.total(s.lowered)
    if 12 <= s.avg_sentence_length <= 25:
        credibility += 10
    if s.vocabulary_ratio > 0.6:
        credibility += 8

    emotional = rules.emotional.total(s.lowered)

    structure = 50 + rules.structure.total(s.lowered)
    if len(s.paragraphs) >= 2:
        structure += 15
    if 0 < s.questions <= 3:
        structure += 10
    if len(s.sentences) > 20 and len(s.paragraphs) < 3:
        structure -= 20  # wall of text

    source = 30 + rules.source.total(s.lowered)
    if s.has_url:
        source += 20
    if s.has_date:
        source += 15
    if s.proper_nouns >= 3:
        source += 15

    return {
        "credibility": _clamp(credibility),
        "suspicious": _clamp(suspicious),
        "emotional": _clamp(emotional),
        "structure": _clamp(structure),
        "source": _clamp(source),
    }


def _phone_subscores(rules: ModeRules, s: TextSignals) -> dict[str, int]:
    stripped = s.original.strip()
    well_formed = bool(stripped) and stripped[0].isupper() and stripped[-1] in ".!?"

    suspicious = rules.suspicious.total(s.lowered)
    if s.caps_ratio > 0.12:
        suspicious += 12
    if s.exclamations >= 2:
        suspicious += 10

    credibility = rules.credibility.total(s.lowered)
    if len(stripped) <= 160 and not s.has_url:
        credibility += 10
    if well_formed:
        credibility += 5

    emotional = rules.emotional.total(s.lowered)
    if s.exclamations >= 3:
        emotional += 10

    structure = 55 + rules.structure.total(s.lowered)
    if well_formed:
        structure += 10
    if s.caps_ratio > 0.30:
        structure -= 15
    if s.exclamations >= 3:
        structure -= 15
    if len(stripped) < 20:
        structure -= 10

    source = 40 + rules.source.total(s.lowered)

    return {
        "credibility": _clamp(credibility),
        "suspicious": _clamp(suspicious),
        "emotional": _clamp(emotional),
        "structure": _clamp(structure),
        "source": _clamp(source),
    }


_EVALUATORS = {
    ContentMode.TEXT: _text_subscores,
    ContentMode.PHONE: _phone_subscores,
}


# ============================================================
# EXPLANATION TEMPLATES
# ============================================================

_LEADS: dict[ContentMode, dict[Verdict, str]] = {
    ContentMode.TEXT: {
        Verdict.HIGHLY_SUSPICIOUS: (
            "This content shows multiple red flags commonly associated with misinformation "
            "or scam content. The {words}-word text contains patterns suggesting potential "
            "manipulation tactics."
        ),
        Verdict.LIKELY_LEGITIMATE: (
            "This content appears to follow patterns typical of credible information sources. "
            "The {words}-word text demonstrates balanced language and appropriate sourcing indicators."
        ),
        Verdict.PROCEED_WITH_CAUTION: (
            "This content shows mixed signals that require careful evaluation. "
            "The {words}-word text displays both credible and concerning elements."
        ),
    },
    ContentMode.PHONE: {
        Verdict.HIGHLY_SUSPICIOUS: (
            "This message matches patterns commonly used in phone and SMS fraud, "
            "such as pressure to act quickly or requests for sensitive details."
        ),
        Verdict.LIKELY_LEGITIMATE: (
            "This message resembles a routine notification and does not ask for "
            "credentials, payments, or remote access."
        ),
        Verdict.PROCEED_WITH_CAUTION: (
            "This message contains some elements often seen in phone scams. "
            "Confirm the sender before acting on it."
        ),
    },
}


def _score_detail(score: int) -> str:
    if score < 30:
        return "Strong indicators suggest this content should be treated with significant skepticism."
    if score > 75:
        return "Multiple positive indicators support the credibility of this content."
    return "Mixed indicators suggest a moderate approach to verification is appropriate."


# ============================================================
# SCORER
# ============================================================

class HeuristicScorer:
    """
    Rule-table scorer for both content modes.

    Tables, overrides and weights are injected so alternative rule sets
    (calibration experiments, tests) can run side by side with the
    production set.
    """

    def __init__(
        self,
        rules: Optional[dict[ContentMode, ModeRules]] = None,
        overrides: Optional[dict[ContentMode, tuple[OverrideRule, ...]]] = None,
        weights: Optional[dict[ContentMode, ScoreWeights]] = None,
    ):
        self._rules = rules or MODE_RULES
        self._overrides = overrides or OVERRIDES
        self._weights = weights or FINAL_WEIGHTS

    def score(self, text: str, mode: Optional[ContentMode] = None) -> ScoreCard:
        """Compute sub-scores, base score and the overridden final score."""
        mode = mode or detect_mode(text)
        rules = self._rules[mode]
        signals = TextSignals(text)

        subs = _EVALUATORS[mode](rules, signals)
        base = _clamp(self._weights[mode].combine(**subs))
        final, fired = self._apply_overrides(text, base, mode)

        matched = {
            table.name: [r.label for r in table.matched(signals.lowered)]
            for table in (rules.suspicious, rules.credibility, rules.emotional)
        }
        return ScoreCard(
            mode=mode,
            base_score=base,
            score=final,
            word_count=signals.word_count,
            overrides=fired,
            matched=matched,
            **subs,
        )

    def _apply_overrides(
        self, text: str, score: int, mode: ContentMode,
    ) -> tuple[int, list[str]]:
        """
        Run the override cascade in order.

        Each rule can only lower the score. A rule whose predicate
        raises is skipped and the score so far stands.
        """
        fired: list[str] = []
        for rule in self._overrides.get(mode, ()):
            try:
                triggered = rule.predicate(text)
            except Exception as e:
                logger.warning(
                    "Override rule %s failed; keeping score %d", rule.name, score,
                    extra={"rule": rule.name, "error": str(e)},
                )
                continue
            if triggered and score > rule.cap:
                score = rule.cap
            if triggered:
                fired.append(rule.name)
        return score, fired

    def analyze(self, text: str) -> AnalysisResult:
        """Full local analysis in the canonical result schema."""
        card = self.score(text)
        verdict = classify_score(card.score)

        return AnalysisResult(
            score=card.score,
            verdict=verdict,
            analysis=self._build_analysis(card, verdict),
            credibility=card.credibility,
            suspicious=card.suspicious,
            emotional=card.emotional,
            structure=card.structure,
            source=card.source,
            indicators=self._build_indicators(card),
            recommendations=recommendations_for(verdict, card.mode),
            content_type=card.mode,
            provenance=Provenance(ai_provider=PROVIDER_LOCAL, ai_model=LOCAL_MODEL),
            overrides=list(card.overrides),
        )

    def _override_descriptions(self, card: ScoreCard) -> list[str]:
        by_name = {r.name: r.description for r in self._overrides.get(card.mode, ())}
        return [by_name.get(name, name) for name in card.overrides]

    def _build_indicators(self, card: ScoreCard) -> list[str]:
        indicators: list[str] = []

        for description in self._override_descriptions(card):
            indicators.append(f"⚠ Known scam pattern: {description}")
        for label in card.matched.get("suspicious", []):
            indicators.append(f"⚠ Suspicious pattern: {label}")

        if card.emotional > 50:
            indicators.append("⚠ Strong emotional manipulation detected")

        if card.mode == ContentMode.PHONE:
            if "security advisory" in card.matched.get("credibility", []):
                indicators.append("✓ Includes a standard security advisory")
            if card.suspicious < 20:
                indicators.append("✓ No credential, payment or link requests found")
        else:
            if card.credibility < 20:
                indicators.append("⚠ Lacks credible source indicators")
            elif card.credibility > 50:
                indicators.append("✓ Shows academic or research indicators")
            elif card.credibility > 30:
                indicators.append("✓ Contains reference patterns")
            if card.suspicious < 20:
                indicators.append("✓ Low suspicious language detected")
            if card.word_count < 50:
                indicators.append("ℹ Very short content - limited analysis")

        if card.emotional < 30:
            indicators.append("✓ Balanced emotional tone")

        if not indicators:
            indicators.append("ℹ Standard content analysis completed")

        deduped = list(dict.fromkeys(indicators))
        return deduped[:MAX_INDICATORS]

    def _build_analysis(self, card: ScoreCard, verdict: Verdict) -> str:
        parts = [_LEADS[card.mode][verdict].format(words=card.word_count)]

        signals = card.matched.get("suspicious", [])
        if signals:
            parts.append(f"Signals detected: {', '.join(signals[:3])}.")
        if card.overrides:
            parts.append(
                "It matches a known scam template, so the score was capped "
                f"at {card.score}."
            )
        parts.append(_score_detail(card.score))
        return " ".join(parts)


# ============================================================
# SINGLETON: rule tables are immutable and the scorer holds no state
# ============================================================

heuristic_scorer = HeuristicScorer()
