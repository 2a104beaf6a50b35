"""
Pattern Library — Versioned Rule Tables

This module is the scoring surface. Every signal the heuristic scorer
understands is declared here as data:

  1. PatternRule   — one weighted regex (label, pattern, weight)
  2. RuleTable     — an ordered set of rules feeding one sub-score
  3. ModeRules     — the five tables for one content mode
  4. OverrideRule  — a (predicate, cap) pair that clamps the final score
  5. ScoreWeights  — the mode-specific sub-score blend

Weights, caps and blend constants are empirically tuned. Change them
here, bump RULESET_VERSION, and re-run the calibration benchmark.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from verifyit.mode import ContentMode

RULESET_VERSION = "4.1.0"

# A pattern contributes at most this many multiples of its weight
MAX_OCCURRENCES = 2


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class PatternRule:
    """
    A weighted detection pattern.

    contribution = weight × min(occurrences, MAX_OCCURRENCES), so one
    repeated token can never dominate a sub-score. Weights may be
    negative for tables where a match should pull the sub-score down.
    """
    label: str
    pattern: str
    weight: int
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "regex", re.compile(self.pattern, re.IGNORECASE))

    def count(self, text: str) -> int:
        return sum(1 for _ in self.regex.finditer(text))

    def contribution(self, text: str) -> int:
        return self.weight * min(self.count(text), MAX_OCCURRENCES)


@dataclass(frozen=True)
class RuleTable:
    """Ordered rules feeding one sub-score."""
    name: str
    rules: tuple[PatternRule, ...]

    def total(self, text: str) -> int:
        """Unclamped sum of rule contributions."""
        return sum(rule.contribution(text) for rule in self.rules)

    def matched(self, text: str) -> list[PatternRule]:
        return [rule for rule in self.rules if rule.regex.search(text)]


@dataclass(frozen=True)
class ModeRules:
    """The five sub-score tables for one content mode."""
    mode: ContentMode
    suspicious: RuleTable
    credibility: RuleTable
    emotional: RuleTable
    structure: RuleTable
    source: RuleTable


@dataclass(frozen=True)
class OverrideRule:
    """
    Hard cap for a known scam archetype.

    When predicate(raw_text) is true the final score becomes
    min(score, cap). Overrides can only lower a score.
    """
    name: str
    cap: int
    predicate: Callable[[str], bool]
    description: str = ""


@dataclass(frozen=True)
class ScoreWeights:
    """Blend of sub-scores into the final score. suspicious/emotional are inverted."""
    credibility: float
    suspicious: float
    emotional: float
    structure: float
    source: float

    def combine(self, credibility: int, suspicious: int, emotional: int,
                structure: int, source: int) -> int:
        return int(round(
            credibility * self.credibility
            + (100 - suspicious) * self.suspicious
            + (100 - emotional) * self.emotional
            + structure * self.structure
            + source * self.source
        ))


def _rx(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _has(pattern: str) -> Callable[[str], bool]:
    compiled = _rx(pattern)
    return lambda text: bool(compiled.search(text))


def _all(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: all(p(text) for p in predicates)


def _any(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: any(p(text) for p in predicates)


def _none(*predicates: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: not any(p(text) for p in predicates)


def _exclamations(minimum: int) -> Callable[[str], bool]:
    return lambda text: text.count("!") >= minimum


# ============================================================
# GENERAL TEXT MODE
# ============================================================

TEXT_RULES = ModeRules(
    mode=ContentMode.TEXT,
    suspicious=RuleTable("suspicious", (
        PatternRule("urgency", r"\burgent\w*|\bact now\b|\blimited time\b|\bhurry\b|\bimmediate(?:ly)?\b", 20),
        PatternRule("hyperbole", r"\bmiracle\b|\bguaranteed\b|100%|\bnever fails\b|\bsecret\b|\bamazing\b", 15),
        PatternRule("financial scam", r"\bfree money\b|\bget rich\b|\bmake \$[\d,]+|\beasy money\b|"
                                      r"\bdouble your (?:money|investment)\b|\bguaranteed (?:returns?|profits?|income)\b", 30),
        PatternRule("conspiracy language", r"\bdoctors hate\b|\bthey don'?t want\b|\bhidden truth\b|"
                                           r"\bconspiracy\b|\bcover[- ]?up\b", 22),
        PatternRule("call to action", r"\bclick (?:here|now|below)\b|\bcall now\b|\bact fast\b|"
                                      r"\bdon'?t miss\b|\blimited offer\b|\border now\b", 18),
        PatternRule("sensational language", r"\bshocking\b|\bunbelievable\b|\bincredible\b|\bbreakthrough\b", 12),
        PatternRule("investment terms", r"\b(?:bitcoin|crypto|investment|profit|roi)\b", 16),
    )),
    credibility=RuleTable("credibility", (
        PatternRule("research references", r"\baccording to\b|\bresearch shows\b|\bstud(?:y|ies) found\b|"
                                           r"\bdata indicates\b|\bstatistics show\b", 15),
        PatternRule("academic sources", r"\bpeer[- ]?reviewed\b|\bpublished in\b|\bjournal\b|"
                                        r"\buniversity\b|\bacademic\b", 20),
        PatternRule("expert mentions", r"\b(?:professor|researcher|scientist|expert|economist|epidemiologist)s?\b", 12),
        PatternRule("source attribution", r"\bsource:|\breferences?:|\bcitation\b|\bbibliography\b", 18),
        PatternRule("academic identifiers", r"\b(?:doi|isbn|pmid):", 25),
        PatternRule("research methodology", r"\bmethodology\b|\bsample size\b|\bconfidence interval\b|"
                                            r"\bmargin of error\b|\bcontrol group\b", 20),
        PatternRule("balanced language", r"\bhowever\b|\balthough\b|\bdespite\b|\bnevertheless\b|"
                                         r"\bon the other hand\b", 8),
    )),
    emotional=RuleTable("emotional", (
        PatternRule("fear appeals", r"\bfear\b|\bscared\b|\bterrified\b|\bpanic\b|\bworried\b|\banxiety\b|\bdanger\b", 12),
        PatternRule("anger induction", r"\bangry\b|\boutraged\b|\bfurious\b|\bdisgusting\b|\bhate\b|\bevil\b", 10),
        PatternRule("pressure tactics", r"\byou must\b|\byou need to\b|\bdon'?t let\b|\bbefore it'?s too late\b", 15),
        PatternRule("exclusivity claims", r"\bexclusive\b|\bchosen\b|\bselected\b|\bprivileged\b|\bspecial offer\b", 8),
        PatternRule("absolute statements", r"\beveryone\b|\bnobody\b|\balways\b|\bnever\b|\bevery single\b", 6),
    )),
    structure=RuleTable("structure", (
        PatternRule("flow indicators", r"\bfirst(?:ly)?\b|\bsecond(?:ly)?\b|\bthird(?:ly)?\b|\bfinally\b|"
                                       r"\bin conclusion\b|\btherefore\b|\bfurthermore\b", 10),
    )),
    source=RuleTable("source", (
        PatternRule("named outlet", r"\b(?:reuters|associated press|bbc|world health organization|"
                                    r"cdc|nih|census bureau)\b", 8),
    )),
)


# Building blocks shared by the text overrides
_FINANCIAL_SCAM = _has(r"free money|get rich|make \$[\d,]+|easy money|double your (?:money|investment)|"
                       r"guaranteed (?:returns?|profits?|income)")
_URGENCY = _has(r"urgent|act now|limited time|hurry|immediate|don'?t miss|act fast")
_DOCTORS_HATE = _has(r"doctors hate|doctors don'?t want|doctors are furious")
_SCAM_HOOK = _has(r"nigerian prince|inheritance|wire transfer|you have been selected|work from home|"
                  r"risk[- ]free|pyramid|passive income|secret (?:system|formula|method)")
_MONEY_TERMS = _has(r"\$\s?\d|money|secret|profit|earn|cash")
_COVER_UP = _has(r"cover[- ]?up|hidden truth|they don'?t want you to know|what they'?re hiding|"
                 r"mainstream media (?:won'?t|will not)|wake up")
_AUTHORITY_SUPPRESSION = _has(r"(?:government|big pharma|media|elites?|authorities|doctors|scientists)\s+"
                              r"(?:are|is)?\s*(?:hiding|suppressing|silencing|censoring|covering)|"
                              r"\bbanned\b|\bcensored\b|\bsuppressed\b|\bsilenced\b")
_SALES_PITCH = _has(r"(?:order|buy|call) now|only \d+ left|while supplies last|limited (?:stock|spots)|"
                    r"offer ends (?:today|tonight|soon|at midnight)")
_SALES_HOOK = _has(r"money[- ]back|free trial|\d+% off|discount|special price|\$\s?\d")
_HYPERBOLE = _has(r"guaranteed|100%|never fails|secret trick|miracle")

TEXT_OVERRIDES: tuple[OverrideRule, ...] = (
    OverrideRule("financial_scam_urgency", 15, _all(_FINANCIAL_SCAM, _URGENCY),
                 "Financial scam phrasing combined with urgency"),
    OverrideRule("doctors_hate_hook", 10, _all(_DOCTORS_HATE, _any(_URGENCY, _exclamations(2))),
                 "'Doctors hate this' hook with urgency or exclamations"),
    OverrideRule("classic_scam_hook", 15, _all(_SCAM_HOOK, _MONEY_TERMS),
                 "Classic scam hook combined with money, secrecy or profit"),
    OverrideRule("cover_up_narrative", 15, _all(_COVER_UP, _AUTHORITY_SUPPRESSION),
                 "Cover-up narrative combined with authority-suppression language"),
    OverrideRule("high_pressure_sales", 12, _all(_SALES_PITCH, _SALES_HOOK),
                 "High-pressure sales pitch"),
    OverrideRule("exclamations_or_hyperbole", 20, _any(_exclamations(4), _HYPERBOLE),
                 "Four or more exclamation marks, or hyperbolic guarantees"),
)


# ============================================================
# PHONE / SMS MODE
# ============================================================

_SHORTENER = r"\b(?:bit\.ly|tinyurl\.com|goo\.gl|t\.co|is\.gd|cutt\.ly|rb\.gy|tiny\.cc|ow\.ly|shorturl\.at)/\S*"

PHONE_RULES = ModeRules(
    mode=ContentMode.PHONE,
    suspicious=RuleTable("suspicious", (
        PatternRule("urgency", r"\burgent\w*|\bimmediately\b|\bwithin \d+ (?:hours?|mins?|minutes)\b|"
                               r"\btoday only\b|\bact now\b|\blast chance\b|\bexpir(?:e|es|ed|ing)\b", 18),
        PatternRule("account threat", r"\bblocked\b|\bsuspended\b|\bdeactivated\b|\blocked\b|\bfrozen\b|"
                                      r"\bdisconnected\b|\blegal action\b|\barrest\w*", 22),
        PatternRule("credential request", r"\botp\b|\bpin\b|\bcvv\b|\bpassword\b|\bverification code\b|"
                                          r"\bone[- ]time password\b|\blogin details\b|\bcard number\b", 25),
        PatternRule("prize hook", r"\blottery\b|\bprize\b|\bwinner\b|\byou (?:have )?won\b|\bjackpot\b|"
                                  r"\blucky draw\b|\bcashback\b", 20),
        PatternRule("payment demand", r"\bpay now\b|\bprocessing fee\b|\bregistration fee\b|\bgift card\b|"
                                      r"\bsend money\b|\brefund\b|\bupi\b", 18),
        PatternRule("suspicious link", _SHORTENER + r"|\bclick (?:here|the link|below)\b|\blink\b", 20),
        PatternRule("remote access tool", r"\banydesk\b|\bteamviewer\b|\bquick ?support\b|\bremote access\b|"
                                          r"\bscreen ?shar(?:e|ing)\b|\brustdesk\b", 30),
        PatternRule("impersonation", r"\bkyc\b|\bcustomer care\b|\bbank official\b|\brbi\b|\bincome tax\b|"
                                     r"\bpolice\b|\bcourier\b|\bcustoms\b|\btelecom department\b", 15),
        PatternRule("callback request", r"\bcall (?:back|us|this number|immediately)\b|\bmissed call\b|"
                                        r"\bwhatsapp (?:me|us)\b", 12),
    )),
    credibility=RuleTable("credibility", (
        PatternRule("official channel", r"\bofficial (?:app|website)\b|\bvisit (?:the |your )?(?:nearest )?branch\b|"
                                        r"\bnumber on the back of your card\b", 20),
        PatternRule("security advisory", r"\bnever share\b|\bdo not share\b|\bdon'?t share\b|\bwill never ask\b", 25),
        PatternRule("transaction receipt", r"\b(?:debited|credited)\b|\ba/c\b|\bavl bal\b|\bavailable balance\b|"
                                           r"\btxn\b|\btransaction id\b|\bref(?:erence)? no\b", 15),
        PatternRule("fraud reporting", r"\breport (?:fraud|spam)\b|\bif not (?:you|done by you)\b|"
                                       r"\bnot done by you\b", 15),
        PatternRule("appointment or delivery notice", r"\bappointment\b|\bscheduled\b|\bdelivered\b|"
                                                       r"\border #?\w*\d\b", 10),
    )),
    emotional=RuleTable("emotional", (
        PatternRule("fear appeals", r"\barrest\w*\b|\bpenalty\b|\bfine\b|\blegal\b|\bpolice\b|\bdanger\b|\bfraud alert\b", 12),
        PatternRule("pressure tactics", r"\bimmediately\b|\bright now\b|\burgent\w*|\bhurry\b|\blast chance\b|"
                                        r"\bfinal (?:notice|warning)\b", 15),
        PatternRule("greed hooks", r"\bcongratulations\b|\byou have won\b|\blucky\b|\bfree\b|\bbonus\b|\bwinner\b", 12),
        PatternRule("secrecy", r"\bdon'?t tell\b|\bdo not inform\b|\bkeep (?:this|it) confidential\b|\bsecret\b", 15),
    )),
    structure=RuleTable("structure", (
        PatternRule("multiple links", r"https?://\S+|" + _SHORTENER, -5),
    )),
    source=RuleTable("source", (
        PatternRule("shortened link", _SHORTENER, -25),
        PatternRule("secure official link", r"https://(?:www\.)?[a-z0-9\-]+\.(?:com|in|org|gov|co\.uk|net)(?:/\S*)?", 15),
        PatternRule("reference number", r"\bref(?:erence)?\s*(?:no|number|#)\b|\bcase id\b|\bticket\b", 10),
        PatternRule("raw callback number", r"\bcall\b[^.\n]{0,20}\+?\d[\d\s\-]{8,}\d", -10),
    )),
)

_CREDENTIAL = _has(r"\botp\b|\bpin\b|\bcvv\b|\bpassword\b|verification code|one[- ]time password|"
                   r"login details|card number")
_CREDENTIAL_ASK = _has(r"\b(?:share|send|tell|provide|give|verify|confirm|enter|reply with)\b")
_ADVISORY = _has(r"never share|do not share|don'?t share|will never ask")
_SHORT_LINK = _has(_SHORTENER)
_PHONE_URGENCY = _has(r"urgent|immediately|within \d+ (?:hours?|mins?|minutes)|today only|last chance|expir")
_ACCOUNT_THREAT = _has(r"blocked|suspended|deactivated|\blocked\b|frozen|disconnected|legal action|arrest")
_VERIFY = _has(r"\bverif(?:y|ication)\b|\bupdate\b|\bconfirm\b|\bkyc\b")
_PRIZE = _has(r"lottery|prize|\bwinner\b|you (?:have )?won|jackpot|lucky draw")
_PRIZE_ASK = _has(r"\bfee\b|\bpay\b|\bclaim\b|\bclick\b|\blink\b|bank details|account details|processing")
_REMOTE_TOOL = _has(r"anydesk|teamviewer|quick ?support|remote access|screen ?shar(?:e|ing)|rustdesk")
_IMPERSONATION = _has(r"\bkyc\b|customer care|bank official|\brbi\b|income tax|police|customs|telecom department")
_CONTACT_DEMAND = _has(r"\bcall\b|\bclick\b|\blink\b|https?://|" + _SHORTENER)

PHONE_OVERRIDES: tuple[OverrideRule, ...] = (
    OverrideRule("credential_harvesting", 10, _all(_CREDENTIAL, _CREDENTIAL_ASK, _none(_ADVISORY)),
                 "Requests an OTP, PIN, password or card details"),
    OverrideRule("remote_access_tool", 12, _REMOTE_TOOL,
                 "Mentions a remote-access or screen-sharing tool"),
    OverrideRule("shortened_link_pressure", 15, _all(_SHORT_LINK, _any(_PHONE_URGENCY, _ACCOUNT_THREAT, _VERIFY)),
                 "Shortened link combined with urgency, threats or verification"),
    OverrideRule("prize_hook", 15, _all(_PRIZE, _PRIZE_ASK),
                 "Prize or lottery hook asking for a fee, click or details"),
    OverrideRule("account_threat_urgency", 18, _all(_ACCOUNT_THREAT, _PHONE_URGENCY),
                 "Account block threat under time pressure"),
    OverrideRule("impersonation_contact", 18, _all(_IMPERSONATION, _CONTACT_DEMAND, _none(_ADVISORY)),
                 "Impersonates an authority and pushes a call or link"),
)


# ============================================================
# MODE REGISTRY
# ============================================================

FINAL_WEIGHTS: dict[ContentMode, ScoreWeights] = {
    ContentMode.TEXT: ScoreWeights(credibility=0.40, suspicious=0.28, emotional=0.15,
                                   structure=0.10, source=0.07),
    ContentMode.PHONE: ScoreWeights(credibility=0.34, suspicious=0.36, emotional=0.14,
                                    structure=0.08, source=0.08),
}

MODE_RULES: dict[ContentMode, ModeRules] = {
    ContentMode.TEXT: TEXT_RULES,
    ContentMode.PHONE: PHONE_RULES,
}

OVERRIDES: dict[ContentMode, tuple[OverrideRule, ...]] = {
    ContentMode.TEXT: TEXT_OVERRIDES,
    ContentMode.PHONE: PHONE_OVERRIDES,
}
