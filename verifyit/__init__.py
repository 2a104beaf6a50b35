"""
VerifyIt — Scam and Misinformation Risk Scoring

Scores free-form text and phone/SMS content with versioned regex rule
tables, optionally blended with an external model's assessment.

Public API:
  - Analyzer:          Primary entry point (local-only or AI-merged)
  - heuristic_scorer:  Deterministic local scorer
  - detect_mode:       Text vs phone/SMS triage
  - classify_score:    Score → verdict band
  - normalize:         Coerce any result-shaped input to AnalysisResult
  - merge_results:     Blend local and external results
  - LLMProvider:       Abstract LLM interface for provider swapping

Usage:
    from verifyit import Analyzer
    result = await Analyzer().analyze("Your SIM will be blocked. Share OTP now.")
"""

__version__ = "3.0.0"

from verifyit.mode import ContentMode, detect_mode
from verifyit.verdict import Verdict, classify_score, recommendations_for
from verifyit.result import AnalysisResult, Provenance
from verifyit.rules import RULESET_VERSION
from verifyit.heuristics import HeuristicScorer, heuristic_scorer
from verifyit.normalizer import normalize
from verifyit.merge import is_usable, merge_results
from verifyit.analyzer import Analyzer, AnalysisUnavailableError
from verifyit.llm import LLMProvider
from verifyit.llm.factory import get_provider

__all__ = [
    "ContentMode",
    "detect_mode",
    "Verdict",
    "classify_score",
    "recommendations_for",
    "AnalysisResult",
    "Provenance",
    "RULESET_VERSION",
    "HeuristicScorer",
    "heuristic_scorer",
    "normalize",
    "is_usable",
    "merge_results",
    "Analyzer",
    "AnalysisUnavailableError",
    "LLMProvider",
    "get_provider",
]
