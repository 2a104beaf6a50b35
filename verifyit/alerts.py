"""
Fraud Alerts — newsletter notification for high-risk content.

After a verification, should_alert() decides whether the result is
high-risk. FraudAlertNotifier then emails every active subscriber,
subject to the newsletter switch, a cooldown window and duplicate
suppression on the content signature. Delivery failures are reported
in the returned AlertStatus and never raised to the caller.
"""

from __future__ import annotations

import asyncio
import hashlib
import html
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

from verifyit.logging import get_logger
from verifyit.mailer import EmailContent, Mailer
from verifyit.result import AnalysisResult, clamp_score
from verifyit.store import AlertState, SubscriberStore
from verifyit.verdict import Verdict

logger = get_logger("alerts")

EXCERPT_LIMIT = 350
MAX_EMAIL_INDICATORS = 5
MAX_EMAIL_RECOMMENDATIONS = 4
CRITICAL_SCORE = 25

ALERT_SUBJECT = "🚨 VerifyIt Fraud Alert: High-Risk Content Detected"

# --- Skip / failure reasons ---
REASON_DISABLED = "newsletter-disabled"
REASON_NO_MAILER = "email-transporter-not-configured"
REASON_NO_SUBSCRIBERS = "no-active-subscribers"
REASON_COOLDOWN = "cooldown-active"
REASON_DUPLICATE = "duplicate-alert"
REASON_ALL_FAILED = "all-sends-failed"
REASON_PROCESSING_ERROR = "alert-processing-error"

_DEFAULT_RECOMMENDATIONS = [
    "Avoid clicking suspicious links",
    "Verify through trusted sources",
    "Report the message if needed",
]

ResultLike = Union[AnalysisResult, Mapping]


@dataclass
class AlertStatus:
    attempted: bool = False
    sent: bool = False
    recipients_count: int = 0
    reason: Optional[str] = None
    detail: Optional[list[dict]] = None

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "sent": self.sent,
            "recipientsCount": self.recipients_count,
            "reason": self.reason,
            "detail": self.detail,
        }


def _as_mapping(result: ResultLike) -> Mapping:
    return result.to_dict() if isinstance(result, AnalysisResult) else result


def should_alert(result: ResultLike, threshold: int = CRITICAL_SCORE) -> bool:
    """High-risk means a HIGHLY SUSPICIOUS verdict or a score at or below threshold."""
    data = _as_mapping(result)
    verdict = data.get("verdict")
    if verdict == Verdict.HIGHLY_SUSPICIOUS or verdict == Verdict.HIGHLY_SUSPICIOUS.value:
        return True
    score = data.get("score")
    return isinstance(score, (int, float)) and not isinstance(score, bool) and score <= threshold


def alert_signature(text: str) -> str:
    """SHA-256 of the trimmed, lower-cased content."""
    return hashlib.sha256((text or "").strip().lower().encode()).hexdigest()


def _html_list(items: list[str]) -> str:
    rows = "".join(f"<li>{html.escape(item)}</li>" for item in items)
    return f'<ul style="margin:0;padding-left:18px;color:#374151;line-height:1.6;">{rows}</ul>'


def build_alert_email(
    text: str,
    result: ResultLike,
    detected_at: Optional[datetime] = None,
) -> EmailContent:
    data = _as_mapping(result)
    excerpt = re.sub(r"\s+", " ", text or "").strip()[:EXCERPT_LIMIT]
    ellipsis = "..." if len(excerpt) >= EXCERPT_LIMIT else ""

    score = clamp_score(data.get("score"))
    verdict = str(data.get("verdict") or Verdict.HIGHLY_SUSPICIOUS.value)
    timestamp = (detected_at or datetime.now(timezone.utc)).isoformat()
    indicators = [str(i) for i in (data.get("indicators") or [])][:MAX_EMAIL_INDICATORS]
    recommendations = [
        str(r) for r in (data.get("recommendations") or [])
    ][:MAX_EMAIL_RECOMMENDATIONS]

    critical = score is not None and score <= CRITICAL_SCORE
    badge = "CRITICAL RISK" if critical else "HIGH RISK"
    badge_color = "#dc2626" if critical else "#f97316"
    score_label = f"{score}/100" if score is not None else "N/A"

    plain = "\n".join([
        "🚨 VerifyIt High-Risk Fraud Alert",
        "",
        f"Risk Level: {badge}",
        f"Risk Score: {score_label}",
        f"Verdict: {verdict}",
        f"Detected At (UTC): {timestamp}",
        "",
        "Content Excerpt:",
        f"{excerpt}{ellipsis}",
        "",
        ("Indicators:\n- " + "\n- ".join(indicators))
        if indicators else "Indicators: No additional indicators available.",
        "",
        "Recommended Actions:\n- " + "\n- ".join(recommendations or _DEFAULT_RECOMMENDATIONS),
        "",
        "Sent by VerifyIt Security Alerts",
    ])

    indicators_html = (
        _html_list(indicators) if indicators
        else '<p style="margin:0;color:#6b7280;">No additional indicators were available.</p>'
    )
    body = f"""
<div style="margin:0;padding:24px 0;background:#f3f4f6;font-family:Arial,Helvetica,sans-serif;">
  <div style="max-width:680px;margin:0 auto;background:#ffffff;border-radius:16px;border:1px solid #e5e7eb;">
    <div style="background:#4f46e5;padding:22px 28px;color:#ffffff;">
      <div style="font-size:13px;letter-spacing:0.4px;">VERIFYIT SECURITY ALERT</div>
      <h1 style="margin:8px 0 6px 0;font-size:24px;">High-Risk Content Detected</h1>
      <p style="margin:0;font-size:14px;">An automated analysis has flagged potentially fraudulent content.</p>
    </div>
    <div style="padding:24px 28px;">
      <div style="padding:14px;border:1px solid #e5e7eb;border-radius:10px;background:#fafafa;margin-bottom:18px;">
        <span style="background:{badge_color};color:#ffffff;font-size:12px;font-weight:700;padding:6px 10px;border-radius:999px;">{badge}</span>
        <div style="margin-top:12px;font-size:16px;font-weight:700;">Risk Score: {score_label}</div>
        <div style="margin-top:5px;font-size:14px;">Verdict: <strong>{html.escape(verdict)}</strong></div>
        <div style="margin-top:5px;color:#6b7280;font-size:12px;">Detected at (UTC): {html.escape(timestamp)}</div>
      </div>
      <h2 style="font-size:16px;">Message Excerpt</h2>
      <div style="padding:12px 14px;background:#f9fafb;border:1px solid #e5e7eb;border-radius:10px;">{html.escape(excerpt)}{ellipsis}</div>
      <h2 style="font-size:16px;">Detected Indicators</h2>
      <div style="padding:12px 14px;background:#f9fafb;border:1px solid #e5e7eb;border-radius:10px;">{indicators_html}</div>
      <h2 style="font-size:16px;">Recommended Actions</h2>
      <div style="padding:12px 14px;background:#f9fafb;border:1px solid #e5e7eb;border-radius:10px;">{_html_list(recommendations or _DEFAULT_RECOMMENDATIONS)}</div>
      <div style="margin-top:18px;padding:12px 14px;background:#fff7ed;border:1px solid #fed7aa;border-radius:10px;color:#9a3412;font-size:13px;">
        Do not share account details, OTPs, or payment information based on suspicious messages.
        Confirm requests through trusted and official channels.
      </div>
    </div>
    <div style="padding:16px 28px;background:#f9fafb;color:#6b7280;font-size:12px;border-top:1px solid #e5e7eb;">
      This alert was generated automatically by VerifyIt.
    </div>
  </div>
</div>"""

    return EmailContent(subject=ALERT_SUBJECT, text=plain, html=body)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FraudAlertNotifier:
    """
    Sends fraud alerts to newsletter subscribers.

    Args:
        store: Subscriber and alert-state persistence.
        mailer: Email sender, or None when delivery is not configured.
        enabled: Newsletter switch.
        cooldown_seconds: Minimum gap between two alerts.
        clock: Returns the current UTC time.
    """

    store: SubscriberStore
    mailer: Optional[Mailer] = None
    enabled: bool = False
    cooldown_seconds: int = 3600
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def send(
        self,
        text: str,
        result: ResultLike,
        bypass_cooldown: bool = False,
        bypass_duplicate: bool = False,
    ) -> AlertStatus:
        status = AlertStatus()

        if not self.enabled:
            status.reason = REASON_DISABLED
            return status
        if self.mailer is None:
            status.reason = REASON_NO_MAILER
            return status

        recipients = self.store.active_emails()
        if not recipients:
            status.reason = REASON_NO_SUBSCRIBERS
            return status

        now = self.clock()
        state = self.store.get_alert_state()
        if (
            not bypass_cooldown
            and state.last_alert_at is not None
            and now - state.last_alert_at < timedelta(seconds=self.cooldown_seconds)
        ):
            status.reason = REASON_COOLDOWN
            return status

        signature = alert_signature(text)
        if not bypass_duplicate and state.last_signature == signature:
            status.reason = REASON_DUPLICATE
            return status

        status.attempted = True
        content = build_alert_email(text, result, detected_at=now)
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(self.mailer.send, email, content) for email in recipients),
            return_exceptions=True,
        )

        delivered: list[str] = []
        failures: list[dict[str, Any]] = []
        for email, outcome in zip(recipients, outcomes):
            if isinstance(outcome, BaseException):
                failures.append({"email": email, "error": str(outcome) or "unknown-send-error"})
            else:
                delivered.append(email)

        if failures:
            logger.warning(
                "Fraud alert delivery failures",
                extra={"recipients_count": len(failures), "error": failures[0]["error"]},
            )

        if not delivered:
            status.reason = REASON_ALL_FAILED
            status.detail = failures[:3]
            return status

        self.store.increment_alerts(delivered)
        self.store.save_alert_state(AlertState(last_alert_at=now, last_signature=signature))

        status.sent = True
        status.recipients_count = len(delivered)
        logger.info("Fraud alert sent", extra={"recipients_count": len(delivered)})
        return status
