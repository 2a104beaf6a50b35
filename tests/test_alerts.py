"""
Fraud Alert Tests

Tests the alert pipeline:
  1. High-risk gate (should_alert)
  2. Content signature
  3. Email rendering (badge, escaping, excerpt, caps)
  4. Notifier decisions: switch, mailer, subscribers, cooldown,
     duplicate suppression, bypasses and partial delivery
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from verifyit.alerts import (
    EXCERPT_LIMIT,
    MAX_EMAIL_INDICATORS,
    REASON_ALL_FAILED,
    REASON_COOLDOWN,
    REASON_DISABLED,
    REASON_DUPLICATE,
    REASON_NO_MAILER,
    REASON_NO_SUBSCRIBERS,
    FraudAlertNotifier,
    alert_signature,
    build_alert_email,
    should_alert,
)
from verifyit.heuristics import heuristic_scorer
from verifyit.mailer import Mailer
from verifyit.store import AlertState, SubscriberStore

SCAM_SMS = "Your SIM will be blocked. Share OTP immediately to verify: bit.ly/xyz"
HIGH_RISK = {
    "score": 12,
    "verdict": "HIGHLY SUSPICIOUS",
    "indicators": ["⚠ Requests OTP"],
    "recommendations": ["Do not share the OTP"],
}
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeMailer(Mailer):
    """Records deliveries; raises for addresses listed in `failing`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, to, content):
        if to in self.failing:
            raise ConnectionError(f"mailbox unavailable: {to}")
        self.sent.append((to, content))


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def store(tmp_path):
    return SubscriberStore(db_path=str(tmp_path / "alerts.db"))


@pytest.fixture
def clock():
    return Clock()


def _notifier(store, mailer=None, enabled=True, clock=None):
    return FraudAlertNotifier(
        store=store,
        mailer=mailer,
        enabled=enabled,
        cooldown_seconds=3600,
        clock=clock or Clock(),
    )


# ============================================================
# HIGH-RISK GATE
# ============================================================

class TestShouldAlert:

    def test_suspicious_verdict(self):
        assert should_alert({"score": 30, "verdict": "HIGHLY SUSPICIOUS"}) is True

    def test_low_score(self):
        assert should_alert({"score": 25, "verdict": "PROCEED WITH CAUTION"}) is True

    def test_above_threshold(self):
        assert should_alert({"score": 26, "verdict": "PROCEED WITH CAUTION"}) is False

    def test_custom_threshold(self):
        assert should_alert({"score": 40, "verdict": "PROCEED WITH CAUTION"}, threshold=40) is True

    def test_missing_score(self):
        assert should_alert({"verdict": "LIKELY LEGITIMATE"}) is False

    def test_analysis_result(self):
        assert should_alert(heuristic_scorer.analyze(SCAM_SMS)) is True


class TestSignature:

    def test_trim_and_case_insensitive(self):
        assert alert_signature("  Share OTP NOW ") == alert_signature("share otp now")

    def test_different_content(self):
        assert alert_signature("share otp now") != alert_signature("share pin now")

    def test_sha256_hex(self):
        assert len(alert_signature("x")) == 64


# ============================================================
# EMAIL RENDERING
# ============================================================

class TestAlertEmail:

    def test_critical_badge(self):
        content = build_alert_email(SCAM_SMS, HIGH_RISK, detected_at=T0)
        assert "CRITICAL RISK" in content.text
        assert "Risk Score: 12/100" in content.text
        assert T0.isoformat() in content.text
        assert "Fraud Alert" in content.subject

    def test_high_badge(self):
        content = build_alert_email(SCAM_SMS, {"score": 30, "verdict": "HIGHLY SUSPICIOUS"})
        assert "HIGH RISK" in content.text
        assert "CRITICAL RISK" not in content.text

    def test_missing_score(self):
        content = build_alert_email(SCAM_SMS, {"verdict": "HIGHLY SUSPICIOUS"})
        assert "Risk Score: N/A" in content.text

    def test_html_escaped(self):
        content = build_alert_email("<script>alert(1)</script> pay now", HIGH_RISK)
        assert "<script>" not in content.html
        assert "&lt;script&gt;" in content.html

    def test_excerpt_truncated(self):
        content = build_alert_email("word " * 200, HIGH_RISK)
        excerpt_line = content.text.split("Content Excerpt:\n", 1)[1].split("\n", 1)[0]
        assert excerpt_line.endswith("...")
        assert len(excerpt_line) <= EXCERPT_LIMIT + 3

    def test_short_excerpt_not_truncated(self):
        content = build_alert_email(SCAM_SMS, HIGH_RISK)
        assert f"{SCAM_SMS}\n" in content.text

    def test_indicators_capped(self):
        result = {**HIGH_RISK, "indicators": [f"finding {i}" for i in range(8)]}
        content = build_alert_email(SCAM_SMS, result)
        assert f"finding {MAX_EMAIL_INDICATORS - 1}" in content.text
        assert f"finding {MAX_EMAIL_INDICATORS}" not in content.text

    def test_default_recommendations(self):
        content = build_alert_email(SCAM_SMS, {"score": 5, "verdict": "HIGHLY SUSPICIOUS"})
        assert "Verify through trusted sources" in content.text
        assert "No additional indicators available" in content.text


# ============================================================
# NOTIFIER
# ============================================================

class TestNotifierSkips:

    @pytest.mark.asyncio
    async def test_disabled(self, store):
        store.ensure_active("a@example.com")
        status = await _notifier(store, FakeMailer(), enabled=False).send(SCAM_SMS, HIGH_RISK)
        assert status.reason == REASON_DISABLED
        assert status.attempted is False

    @pytest.mark.asyncio
    async def test_no_mailer(self, store):
        store.ensure_active("a@example.com")
        status = await _notifier(store, mailer=None).send(SCAM_SMS, HIGH_RISK)
        assert status.reason == REASON_NO_MAILER

    @pytest.mark.asyncio
    async def test_no_subscribers(self, store):
        status = await _notifier(store, FakeMailer()).send(SCAM_SMS, HIGH_RISK)
        assert status.reason == REASON_NO_SUBSCRIBERS
        assert status.to_dict() == {
            "attempted": False,
            "sent": False,
            "recipientsCount": 0,
            "reason": REASON_NO_SUBSCRIBERS,
            "detail": None,
        }


class TestNotifierDelivery:

    @pytest.mark.asyncio
    async def test_sends_to_all_active(self, store, clock):
        store.ensure_active("a@example.com")
        store.ensure_active("b@example.com")
        mailer = FakeMailer()
        status = await _notifier(store, mailer, clock=clock).send(SCAM_SMS, HIGH_RISK)

        assert status.attempted is True
        assert status.sent is True
        assert status.recipients_count == 2
        assert status.reason is None
        assert sorted(to for to, _ in mailer.sent) == ["a@example.com", "b@example.com"]
        assert store.get_subscriber("a@example.com").alerts_received == 1
        assert store.get_alert_state() == AlertState(
            last_alert_at=T0, last_signature=alert_signature(SCAM_SMS),
        )

    @pytest.mark.asyncio
    async def test_cooldown(self, store, clock):
        store.ensure_active("a@example.com")
        notifier = _notifier(store, FakeMailer(), clock=clock)
        await notifier.send(SCAM_SMS, HIGH_RISK)

        clock.advance(600)
        status = await notifier.send("A different scam: claim your prize now", HIGH_RISK)
        assert status.reason == REASON_COOLDOWN
        assert status.attempted is False

    @pytest.mark.asyncio
    async def test_cooldown_expires(self, store, clock):
        store.ensure_active("a@example.com")
        notifier = _notifier(store, FakeMailer(), clock=clock)
        await notifier.send(SCAM_SMS, HIGH_RISK)

        clock.advance(3601)
        status = await notifier.send("A different scam: claim your prize now", HIGH_RISK)
        assert status.sent is True

    @pytest.mark.asyncio
    async def test_duplicate_suppressed_after_cooldown(self, store, clock):
        store.ensure_active("a@example.com")
        notifier = _notifier(store, FakeMailer(), clock=clock)
        await notifier.send(SCAM_SMS, HIGH_RISK)

        clock.advance(7200)
        status = await notifier.send(f"  {SCAM_SMS.upper()} ", HIGH_RISK)
        assert status.reason == REASON_DUPLICATE

    @pytest.mark.asyncio
    async def test_bypasses(self, store, clock):
        store.ensure_active("a@example.com")
        mailer = FakeMailer()
        notifier = _notifier(store, mailer, clock=clock)
        await notifier.send(SCAM_SMS, HIGH_RISK)

        status = await notifier.send(
            SCAM_SMS, HIGH_RISK, bypass_cooldown=True, bypass_duplicate=True,
        )
        assert status.sent is True
        assert len(mailer.sent) == 2
        assert store.get_subscriber("a@example.com").alerts_received == 2

    @pytest.mark.asyncio
    async def test_inactive_subscribers_skipped(self, store):
        store.ensure_active("a@example.com")
        mailer = FakeMailer()
        with store._get_conn() as conn:
            conn.execute("UPDATE subscribers SET active = 0")
            conn.commit()
        status = await _notifier(store, mailer).send(SCAM_SMS, HIGH_RISK)
        assert status.reason == REASON_NO_SUBSCRIBERS
        assert mailer.sent == []


class TestNotifierFailures:

    @pytest.mark.asyncio
    async def test_partial_failure(self, store, clock):
        store.ensure_active("ok@example.com")
        store.ensure_active("bad@example.com")
        mailer = FakeMailer(failing={"bad@example.com"})
        status = await _notifier(store, mailer, clock=clock).send(SCAM_SMS, HIGH_RISK)

        assert status.sent is True
        assert status.recipients_count == 1
        assert store.get_subscriber("ok@example.com").alerts_received == 1
        assert store.get_subscriber("bad@example.com").alerts_received == 0

    @pytest.mark.asyncio
    async def test_all_failed(self, store, clock):
        for i in range(5):
            store.ensure_active(f"user{i}@example.com")
        mailer = FakeMailer(failing={f"user{i}@example.com" for i in range(5)})
        status = await _notifier(store, mailer, clock=clock).send(SCAM_SMS, HIGH_RISK)

        assert status.attempted is True
        assert status.sent is False
        assert status.reason == REASON_ALL_FAILED
        assert len(status.detail) == 3
        assert "mailbox unavailable" in status.detail[0]["error"]

    @pytest.mark.asyncio
    async def test_all_failed_does_not_start_cooldown(self, store, clock):
        store.ensure_active("bad@example.com")
        notifier = _notifier(store, FakeMailer(failing={"bad@example.com"}), clock=clock)
        await notifier.send(SCAM_SMS, HIGH_RISK)
        assert store.get_alert_state() == AlertState()

        notifier.mailer = FakeMailer()
        status = await notifier.send(SCAM_SMS, HIGH_RISK)
        assert status.sent is True
