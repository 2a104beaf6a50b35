"""
Analyzer — Verification Orchestrator

Coordinates the two scoring paths:
  - local:   Heuristic scorer only. Deterministic, zero API cost.
  - merged:  Heuristic result blended with an external model's result.

The external provider is injected. With no provider the analyzer is
local-only. Any failure on the external path (transport, parsing,
validation, merge) degrades to the local result tagged as a fallback;
only a failure of the heuristic path itself reaches the caller.
"""

from __future__ import annotations

import dataclasses
import time
from typing import Optional

from verifyit.heuristics import HeuristicScorer, heuristic_scorer
from verifyit.llm import LLMProvider
from verifyit.logging import get_logger
from verifyit.merge import is_usable, merge_results
from verifyit.mode import ContentMode
from verifyit.normalizer import normalize
from verifyit.result import (
    PROVIDER_FALLBACK,
    PROVIDER_GEMINI,
    AnalysisResult,
    Provenance,
)

logger = get_logger("analyzer")


class AnalysisUnavailableError(Exception):
    """The local scoring path failed; no result can be produced."""

    def __init__(self, message: str = "AI analysis temporarily unavailable"):
        super().__init__(message)


# ============================================================
# LLM PROMPTS
# ============================================================

_RESPONSE_FORMAT = """Return ONLY a JSON object with these keys:
- "score": integer 0-100, where HIGHER means MORE trustworthy
- "verdict": one of "HIGHLY SUSPICIOUS", "PROCEED WITH CAUTION", "LIKELY LEGITIMATE"
- "analysis": 2-4 sentences explaining the assessment
- "credibilityScore", "suspiciousScore", "emotionalScore", "structureScore", "sourceScore": integers 0-100
- "indicators": array of at most 6 short findings, each prefixed with ⚠, ✓ or ℹ
- "contentType": "{mode}"

Use score < 35 for HIGHLY SUSPICIOUS and score > 70 for LIKELY LEGITIMATE."""

TEXT_PROMPT = """You are VerifyIt, a misinformation and scam detection assistant.

## Your Task
Assess whether the following text is credible information, misleading content or a scam.
Look for: unsupported claims, fabricated authority, emotional manipulation, urgency and
pressure, financial bait, conspiracy framing, and whether sources can be verified.

## Local Heuristic Assessment
A deterministic scorer rated this text {local_score}/100 ({local_verdict}).
Treat it as a second opinion, not ground truth.

## Text to Analyze
{text}

{response_format}"""

PHONE_PROMPT = """You are VerifyIt, a phone and SMS fraud detection assistant.

## Your Task
Assess whether the following message or phone number is part of a scam.
Look for: requests for OTPs, PINs or passwords, account-block threats, prize or refund
hooks, shortened or unofficial links, remote-access app requests, impersonation of
banks, telecoms or government bodies, and pressure to call back or pay.

## Local Heuristic Assessment
A deterministic scorer rated this message {local_score}/100 ({local_verdict}).
Treat it as a second opinion, not ground truth.

## Message to Analyze
{text}

{response_format}"""

_PROMPTS = {
    ContentMode.TEXT: TEXT_PROMPT,
    ContentMode.PHONE: PHONE_PROMPT,
}


def build_prompt(text: str, local: AnalysisResult) -> str:
    """Mode-specific prompt carrying the local verdict as context."""
    template = _PROMPTS[local.content_type]
    return template.format(
        text=text,
        local_score=local.score,
        local_verdict=local.verdict.value,
        response_format=_RESPONSE_FORMAT.format(mode=local.content_type.value),
    )


class Analyzer:
    """
    Primary entry point: await analyzer.analyze(text).

    Args:
        llm: External provider, or None for local-only analysis.
        scorer: Heuristic scorer; the module singleton by default.
    """

    def __init__(
        self,
        llm: Optional[LLMProvider] = None,
        scorer: HeuristicScorer = heuristic_scorer,
    ):
        self.llm = llm
        self.scorer = scorer

    @property
    def ai_enabled(self) -> bool:
        return self.llm is not None

    def analyze_local(self, text: str) -> AnalysisResult:
        try:
            return self.scorer.analyze(text)
        except Exception as e:
            logger.error(
                "Heuristic analysis failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            raise AnalysisUnavailableError() from e

    async def analyze(self, text: str) -> AnalysisResult:
        start = time.perf_counter()
        local = self.analyze_local(text)

        if self.llm is None:
            result = local
        else:
            result = await self._analyze_with_llm(text, local, self.llm)

        logger.info(
            "Analysis complete",
            extra={
                "score": result.score,
                "verdict": result.verdict.value,
                "content_type": result.content_type.value,
                "ai_provider": result.provenance.ai_provider,
                "text_length": len(text),
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return result

    async def _analyze_with_llm(
        self,
        text: str,
        local: AnalysisResult,
        llm: LLMProvider,
    ) -> AnalysisResult:
        try:
            model = llm.model_name
            raw = await llm.generate_json(build_prompt(text, local), temperature=0.2)
            if not is_usable(raw):
                logger.warning(
                    "External result failed validation; using local result",
                    extra={"ai_model": model},
                )
                return _as_fallback(local)
            external = normalize(raw, PROVIDER_GEMINI, model, local.content_type)
            return merge_results(local, external, model)
        except Exception as e:
            logger.warning(
                "External analysis failed; using local result",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return _as_fallback(local)


def _as_fallback(local: AnalysisResult) -> AnalysisResult:
    return dataclasses.replace(
        local,
        provenance=Provenance(
            ai_provider=PROVIDER_FALLBACK,
            ai_model=local.provenance.ai_model,
        ),
    )
