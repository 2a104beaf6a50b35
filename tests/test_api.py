"""
API Integration Tests — Endpoint Verification

Tests every public API endpoint using FastAPI's TestClient.
No real LLM or SMTP calls: the analyzer, subscriber store and alert
notifier are replaced through dependency overrides.

These tests catch:
  - Schema mismatches (response model vs actual data)
  - Route registration issues
  - Middleware/dependency injection bugs
  - Response format regressions
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from verifyit.alerts import FraudAlertNotifier
from verifyit.analyzer import Analyzer
from verifyit.llm import LLMProvider
from verifyit.mailer import Mailer
from verifyit.store import SubscriberStore

SCAM_TEXT = "URGENT! Limited time offer! Click now to get free money and guaranteed returns."
CREDIBLE_ARTICLE = (
    "According to a university study published in a peer-reviewed journal, researchers at "
    "the institute tracked sleep patterns of 2,400 adults over five years. The methodology "
    "relied on wearable monitors and daily questionnaires, and the sample size was large "
    "enough to detect modest effects.\n\n"
    "However, the authors note that the findings describe correlation rather than causation. "
    "Professor Maria Lopez, who led the project at Stanford University, said further trials "
    "are planned for 2025 to confirm whether earlier bedtimes improve memory in older "
    "participants."
)


class FakeMailer(Mailer):

    def __init__(self, failing=False):
        self.failing = failing
        self.sent = []
        self.contents = []

    def send(self, to, content):
        if self.failing:
            raise ConnectionRefusedError("smtp down")
        self.sent.append(to)
        self.contents.append(content)


class StubLLM(LLMProvider):
    """Answers the status check, or raises when `error` is set."""

    def __init__(self, reply="OK", error=None):
        self._reply = reply
        self._error = error

    @property
    def model_name(self) -> str:
        return "stub-model"

    async def generate(self, prompt, system_instruction=None, temperature=0.7, json_mode=False):
        if self._error is not None:
            raise self._error
        return self._reply


class BrokenScorer:
    def analyze(self, text):
        raise RuntimeError("rule table corrupted")


# --- Fixtures ---

@pytest.fixture
def store(tmp_path):
    return SubscriberStore(db_path=str(tmp_path / "api.db"))


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def env(store, mailer):
    """Overridable dependencies for the VerifyIt API."""
    from api.main import app, get_analyzer, get_notifier, get_store

    deps = {
        "analyzer": Analyzer(llm=None),
        "notifier": FraudAlertNotifier(store=store, mailer=mailer, enabled=True),
    }
    app.dependency_overrides[get_analyzer] = lambda: deps["analyzer"]
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: deps["notifier"]
    with TestClient(app) as c:
        yield c, deps
    app.dependency_overrides.clear()


@pytest.fixture
def client(env):
    return env[0]


# ============================================================
# HEALTH & META
# ============================================================

class TestHealth:

    def test_health_fields(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["aiEnabled"] is False
        assert data["analysisType"] == "Advanced Pattern Recognition"
        assert data["version"]
        assert data["timestamp"]
        assert data["activeSubscribers"] == 0

    def test_health_counts_subscribers(self, client):
        client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
        assert client.get("/api/health").json()["activeSubscribers"] == 1

    def test_health_reports_ai(self, env):
        client, deps = env
        deps["analyzer"] = Analyzer(llm=StubLLM())
        assert client.get("/api/health").json()["aiEnabled"] is True

    def test_security_headers(self, client):
        r = client.get("/api/health")
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "DENY"
        assert "X-VerifyIt-Version" in r.headers
        assert "X-Ruleset-Version" in r.headers

    def test_root(self, client):
        assert client.get("/").status_code == 200


# ============================================================
# VERIFY
# ============================================================

class TestVerifyValidation:

    @pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"text": None}])
    def test_text_required(self, client, body):
        r = client.post("/api/verify", json=body)
        assert r.status_code == 400
        assert r.json() == {"error": "Text content is required for verification"}

    def test_text_too_long(self, client):
        r = client.post("/api/verify", json={"text": "a" * 10_001})
        assert r.status_code == 400
        assert "too long" in r.json()["error"]

    def test_max_length_accepted(self, client):
        r = client.post("/api/verify", json={"text": "a" * 10_000})
        assert r.status_code == 200

    def test_scorer_failure_returns_500(self, env):
        client, deps = env
        deps["analyzer"] = Analyzer(scorer=BrokenScorer())
        r = client.post("/api/verify", json={"text": "hello world"})
        assert r.status_code == 500
        assert r.json() == {"error": "AI analysis temporarily unavailable"}


class TestVerify:

    def test_response_shape(self, client):
        r = client.post("/api/verify", json={"text": SCAM_TEXT})
        assert r.status_code == 200
        data = r.json()
        for key in (
            "score", "verdict", "analysis",
            "credibilityScore", "suspiciousScore", "emotionalScore",
            "structureScore", "sourceScore",
            "indicators", "recommendations", "contentType",
            "aiProvider", "aiModel", "timestamp", "textLength", "analysisVersion",
        ):
            assert key in data, key
        assert data["textLength"] == len(SCAM_TEXT)
        assert data["aiProvider"] == "local-heuristic"

    def test_scam_is_flagged(self, client):
        data = client.post("/api/verify", json={"text": SCAM_TEXT}).json()
        assert data["verdict"] == "HIGHLY SUSPICIOUS"
        assert data["score"] <= 15
        assert data["fraudAlert"]["attempted"] is False
        assert data["fraudAlert"]["reason"] == "no-active-subscribers"

    def test_scam_alerts_subscribers(self, client, store, mailer):
        store.ensure_active("reader@example.com")
        data = client.post("/api/verify", json={"text": SCAM_TEXT}).json()
        assert data["fraudAlert"]["sent"] is True
        assert data["fraudAlert"]["recipientsCount"] == 1
        assert mailer.sent == ["reader@example.com"]

    def test_sent_alert_keeps_null_fields(self, client, store):
        store.ensure_active("reader@example.com")
        alert = client.post("/api/verify", json={"text": SCAM_TEXT}).json()["fraudAlert"]
        assert alert["reason"] is None
        assert alert["detail"] is None

    def test_repeat_scam_hits_cooldown(self, client, store):
        store.ensure_active("reader@example.com")
        client.post("/api/verify", json={"text": SCAM_TEXT})
        data = client.post("/api/verify", json={"text": SCAM_TEXT}).json()
        assert data["fraudAlert"]["reason"] == "cooldown-active"

    def test_credible_article_no_alert(self, client):
        data = client.post("/api/verify", json={"text": CREDIBLE_ARTICLE}).json()
        assert data["verdict"] == "LIKELY LEGITIMATE"
        assert data["contentType"] == "text"
        assert "fraudAlert" not in data

    def test_phone_content_type(self, client):
        data = client.post(
            "/api/verify",
            json={"text": "Your SIM will be blocked. Share OTP immediately to verify: bit.ly/xyz"},
        ).json()
        assert data["contentType"] == "phone"

    def test_alert_failure_does_not_fail_request(self, env):
        client, deps = env

        class ExplodingNotifier:
            async def send(self, *args, **kwargs):
                raise RuntimeError("database is locked")

        deps["notifier"] = ExplodingNotifier()
        r = client.post("/api/verify", json={"text": SCAM_TEXT})
        assert r.status_code == 200
        assert r.json()["fraudAlert"]["reason"] == "alert-processing-error"
        assert r.json()["fraudAlert"]["attempted"] is True

    def test_provider_failure_falls_back(self, env):
        client, deps = env
        deps["analyzer"] = Analyzer(llm=StubLLM(error=TimeoutError("deadline")))
        data = client.post("/api/verify", json={"text": SCAM_TEXT}).json()
        assert data["aiProvider"] == "local-heuristic-fallback"
        assert data["verdict"] == "HIGHLY SUSPICIOUS"


# ============================================================
# AI STATUS
# ============================================================

class TestAIStatus:

    def test_local_mode(self, client):
        data = client.get("/api/ai-status").json()
        assert data["ok"] is True
        assert data["mode"] == "local-fallback"

    def test_status_check_ok(self, env):
        client, deps = env
        deps["analyzer"] = Analyzer(llm=StubLLM(reply=" OK \n"))
        r = client.get("/api/ai-status")
        assert r.status_code == 200
        data = r.json()
        assert data["ok"] is True
        assert data["mode"] == "gemini-api-key"
        assert data["model"] == "stub-model"
        assert data["reply"] == "OK"

    def test_status_check_failure(self, env):
        client, deps = env
        deps["analyzer"] = Analyzer(llm=StubLLM(error=ConnectionError("quota exceeded")))
        r = client.get("/api/ai-status")
        assert r.status_code == 502
        data = r.json()
        assert data["ok"] is False
        assert "quota exceeded" in data["error"]


# ============================================================
# NEWSLETTER
# ============================================================

class TestNewsletter:

    def test_subscribe(self, client, store):
        r = client.post("/api/newsletter/subscribe", json={"email": " Reader@Example.com "})
        assert r.status_code == 200
        assert r.json() == {"message": "Subscription successful"}
        assert store.active_emails() == ["reader@example.com"]

    def test_subscribe_duplicate(self, client):
        client.post("/api/newsletter/subscribe", json={"email": "reader@example.com"})
        r = client.post("/api/newsletter/subscribe", json={"email": "READER@example.com"})
        assert r.status_code == 409
        assert r.json() == {"error": "Email already subscribed"}

    @pytest.mark.parametrize("body", [{}, {"email": ""}, {"email": "not-an-email"}])
    def test_subscribe_invalid(self, client, body):
        r = client.post("/api/newsletter/subscribe", json=body)
        assert r.status_code == 400
        assert r.json() == {"error": "A valid email address is required"}

    def test_high_risk_test_subscribes_and_sends(self, client, store, mailer):
        r = client.post("/api/newsletter/test-high-risk", json={"email": "qa@example.com"})
        assert r.status_code == 200
        data = r.json()
        assert data["message"] == "High-risk alert test executed"
        assert data["fraudAlert"]["sent"] is True
        assert mailer.sent == ["qa@example.com"]

    def test_high_risk_test_bypasses_cooldown(self, client, mailer):
        client.post("/api/newsletter/test-high-risk", json={"email": "qa@example.com"})
        data = client.post("/api/newsletter/test-high-risk", json={}).json()
        assert data["fraudAlert"]["sent"] is True
        assert len(mailer.sent) == 2

    def test_high_risk_test_invalid_email(self, client):
        r = client.post("/api/newsletter/test-high-risk", json={"email": "nope"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid email for test subscription"}

    def test_high_risk_test_without_subscribers(self, client):
        data = client.post("/api/newsletter/test-high-risk", json={}).json()
        assert data["fraudAlert"]["reason"] == "no-active-subscribers"


class TestSendTestEmail:

    def test_sends_to_recipient(self, client, mailer):
        r = client.post("/api/newsletter/send-test", json={
            "to": "qa@example.com", "subject": "Hello", "text": "plain",
        })
        assert r.status_code == 200
        assert r.json() == {"message": "Test email sent", "to": "qa@example.com"}
        assert mailer.sent == ["qa@example.com"]
        content = mailer.contents[0]
        assert content.subject == "Hello"
        assert content.text == "plain"
        assert "test alert" in content.html

    def test_defaults_to_sender_address(self, client, mailer, monkeypatch):
        import api.main
        from verifyit.config import Settings
        monkeypatch.setattr(api.main, "settings", Settings(EMAIL_FROM_ADDRESS="alerts@example.com"))
        r = client.post("/api/newsletter/send-test", json={})
        assert r.status_code == 200
        assert r.json()["to"] == "alerts@example.com"
        assert mailer.contents[0].subject == "VerifyIt - Test Alert"

    def test_disabled_returns_403(self, env, store, mailer):
        client, deps = env
        deps["notifier"] = FraudAlertNotifier(store=store, mailer=mailer, enabled=False)
        r = client.post("/api/newsletter/send-test", json={"to": "qa@example.com"})
        assert r.status_code == 403
        assert r.json() == {"error": "Newsletter/email sending is disabled in configuration"}
        assert mailer.sent == []

    def test_send_failure_returns_500(self, env, store):
        client, deps = env
        deps["notifier"] = FraudAlertNotifier(
            store=store, mailer=FakeMailer(failing=True), enabled=True,
        )
        r = client.post("/api/newsletter/send-test", json={"to": "qa@example.com"})
        assert r.status_code == 500
        assert r.json() == {"error": "Failed to send test email"}

    def test_invalid_recipient(self, client):
        r = client.post("/api/newsletter/send-test", json={"to": "nope"})
        assert r.status_code == 400
