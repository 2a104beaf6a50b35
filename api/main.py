"""
VerifyIt API — Main Application

POST /api/verify                    — Score text or phone/SMS content
GET  /api/health                    — Health check
GET  /api/ai-status                 — External AI provider status probe
POST /api/newsletter/subscribe      — Subscribe to fraud alerts
POST /api/newsletter/test-high-risk — Send a test fraud alert
POST /api/newsletter/send-test      — Send a plain test email
"""

from __future__ import annotations

import asyncio
import re
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.requests import Request

from verifyit.alerts import (
    REASON_PROCESSING_ERROR,
    AlertStatus,
    FraudAlertNotifier,
    should_alert,
)
from verifyit.analyzer import Analyzer, AnalysisUnavailableError
from verifyit.config import settings
from verifyit.llm.factory import get_provider
from verifyit.logging import get_logger, setup_logging
from verifyit.mailer import EmailContent, get_mailer
from verifyit.rules import RULESET_VERSION
from verifyit.schemas.api import (
    AIStatusResponse,
    ErrorResponse,
    HealthResponse,
    HighRiskTestRequest,
    HighRiskTestResponse,
    SendTestRequest,
    SendTestResponse,
    SubscribeRequest,
    SubscribeResponse,
    VerifyRequest,
    VerifyResponse,
)
from verifyit.store import SubscriberStore, normalize_email
from verifyit.verdict import Verdict

logger = get_logger("api")

_EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
_SAMPLE_HIGH_RISK_TEXT = (
    "URGENT! Limited time offer! Click now to get free money and guaranteed returns."
)
_PROBE_PROMPT = "Respond with OK"
_TEST_EMAIL_TEXT = "This is a test alert from VerifyIt to verify email sending functionality."
_TEST_EMAIL_HTML = (
    "<p>This is a <strong>test alert</strong> from VerifyIt "
    "to verify email sending functionality.</p>"
)


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire up logging on startup."""
    setup_logging()
    logger.info(
        "VerifyIt API starting",
        extra={"ai_provider": settings.LLM_PROVIDER if settings.ai_configured else "local-heuristic"},
    )
    yield
    logger.info("VerifyIt API shutting down")


app = FastAPI(
    title="VerifyIt API",
    description="Scam and misinformation risk scoring for text and phone/SMS content",
    version=f"{settings.APP_VERSION} (rules {RULESET_VERSION})",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)

# Static front-end, when deployed alongside the API
_static_dir = Path(__file__).resolve().parent / "static"
if _static_dir.is_dir():
    app.mount("/static", StaticFiles(directory=str(_static_dir)), name="static")


@app.get("/", include_in_schema=False)
async def root():
    index = _static_dir / "index.html"
    if index.exists():
        return FileResponse(str(index), media_type="text/html")
    return JSONResponse({"message": "VerifyIt API", "docs": "/docs"})


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error during verification",
            "message": "Please try again later",
        },
    )


# ============================================================
# DEPENDENCIES
# ============================================================

def get_analyzer(request: Request) -> Analyzer:
    """Analyzer with the configured provider, or local-only when AI is off."""
    state = request.app.state
    if getattr(state, "analyzer", None) is None:
        llm = None
        if settings.ai_configured:
            llm = get_provider(
                settings.LLM_PROVIDER,
                api_key=settings.GEMINI_API_KEY,
                model=settings.GEMINI_MODEL,
            )
        state.analyzer = Analyzer(llm=llm)
    return state.analyzer


def get_store(request: Request) -> SubscriberStore:
    state = request.app.state
    if getattr(state, "store", None) is None:
        state.store = SubscriberStore(settings.DB_PATH)
    return state.store


def get_notifier(
    request: Request,
    store: SubscriberStore = Depends(get_store),
) -> FraudAlertNotifier:
    state = request.app.state
    if getattr(state, "notifier", None) is None:
        state.notifier = FraudAlertNotifier(
            store=store,
            mailer=get_mailer(settings),
            enabled=settings.NEWSLETTER_ENABLED,
            cooldown_seconds=settings.FRAUD_ALERT_COOLDOWN,
        )
    return state.notifier


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=message)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    """Render HTTP errors as {"error": ...} like the web client expects."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


# ============================================================
# ROUTES
# ============================================================

@app.post(
    "/api/verify",
    response_model=VerifyResponse,
    response_model_exclude_unset=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def verify(
    request: VerifyRequest,
    analyzer: Analyzer = Depends(get_analyzer),
    notifier: FraudAlertNotifier = Depends(get_notifier),
):
    """Score text for scam/misinformation risk; alert subscribers when high-risk."""
    text = request.text
    if not text or not text.strip():
        raise _error(400, "Text content is required for verification")
    if len(text) > settings.MAX_TEXT_LENGTH:
        raise _error(
            400,
            f"Text content too long. Please limit to {settings.MAX_TEXT_LENGTH:,} characters.",
        )

    try:
        result = await analyzer.analyze(text)
    except AnalysisUnavailableError as e:
        raise _error(500, str(e))

    response = result.to_dict()
    response["timestamp"] = _utc_timestamp()
    response["textLength"] = len(text)
    response["analysisVersion"] = settings.APP_VERSION

    if should_alert(result, settings.HIGH_RISK_THRESHOLD):
        try:
            status = await notifier.send(text, response)
        except Exception as e:
            logger.error(
                "Fraud alert processing failed",
                extra={"error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            status = AlertStatus(attempted=True, reason=REASON_PROCESSING_ERROR)
        response["fraudAlert"] = status.to_dict()

    return response


@app.get("/api/health", response_model=HealthResponse)
async def health(
    analyzer: Analyzer = Depends(get_analyzer),
    store: SubscriberStore = Depends(get_store),
):
    """Health check."""
    return {
        "status": "healthy",
        "timestamp": _utc_timestamp(),
        "version": settings.APP_VERSION,
        "aiEnabled": analyzer.ai_enabled,
        "analysisType": (
            "AI-Assisted Pattern Recognition" if analyzer.ai_enabled
            else "Advanced Pattern Recognition"
        ),
        "activeSubscribers": store.stats()["active_subscribers"],
    }


@app.get("/api/ai-status", response_model=AIStatusResponse)
async def ai_status(analyzer: Analyzer = Depends(get_analyzer)):
    """Report provider configuration; probe the provider when one is configured."""
    llm = analyzer.llm
    if llm is None:
        return AIStatusResponse(
            ok=True,
            mode="local-fallback",
            keyConfigured=bool(settings.GEMINI_API_KEY),
        )

    report = AIStatusResponse(
        ok=True,
        mode="gemini-api-key",
        provider=settings.LLM_PROVIDER,
        model=llm.model_name,
        keyConfigured=True,
    )
    try:
        report.reply = (await llm.generate(_PROBE_PROMPT, temperature=0.0)).strip()
    except Exception as e:
        logger.warning(
            "AI status probe failed",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        report.ok = False
        report.error = f"Provider request failed: {e}"
        return JSONResponse(status_code=502, content=report.model_dump())
    return report


@app.post(
    "/api/newsletter/subscribe",
    response_model=SubscribeResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def subscribe(
    request: SubscribeRequest,
    store: SubscriberStore = Depends(get_store),
):
    """Subscribe an email address to fraud alerts."""
    email = request.email
    if not email or not _EMAIL_RE.match(email.strip()):
        raise _error(400, "A valid email address is required")

    if not store.ensure_active(email):
        raise _error(409, "Email already subscribed")

    logger.info("Newsletter subscription", extra={"email": normalize_email(email)})
    return {"message": "Subscription successful"}


@app.post("/api/newsletter/test-high-risk", response_model=HighRiskTestResponse)
async def test_high_risk(
    request: HighRiskTestRequest,
    store: SubscriberStore = Depends(get_store),
    notifier: FraudAlertNotifier = Depends(get_notifier),
):
    """Run the alert pipeline on a synthetic high-risk result, skipping cooldown and dedup."""
    if request.email:
        if not _EMAIL_RE.match(request.email.strip()):
            raise _error(400, "Invalid email for test subscription")
        store.ensure_active(request.email)

    text = (request.text or "").strip() or _SAMPLE_HIGH_RISK_TEXT
    status = await notifier.send(
        text,
        {"score": 10, "verdict": Verdict.HIGHLY_SUSPICIOUS.value},
        bypass_cooldown=True,
        bypass_duplicate=True,
    )
    return {"message": "High-risk alert test executed", "fraudAlert": status.to_dict()}


@app.post(
    "/api/newsletter/send-test",
    response_model=SendTestResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def send_test_email(
    request: SendTestRequest,
    notifier: FraudAlertNotifier = Depends(get_notifier),
):
    """Send a plain test email to check SMTP delivery."""
    if not notifier.enabled:
        raise _error(403, "Newsletter/email sending is disabled in configuration")
    if notifier.mailer is None:
        raise _error(500, "Email delivery is not configured")

    to = (request.to or "").strip() or settings.EMAIL_FROM_ADDRESS or settings.SMTP_USER
    if not to or not _EMAIL_RE.match(to):
        raise _error(400, "A valid recipient address is required")

    content = EmailContent(
        subject=request.subject or "VerifyIt - Test Alert",
        text=request.text or _TEST_EMAIL_TEXT,
        html=request.html or _TEST_EMAIL_HTML,
    )
    try:
        await asyncio.to_thread(notifier.mailer.send, to, content)
    except Exception as e:
        logger.error(
            "Test email failed",
            extra={"email": to, "error": str(e), "error_type": type(e).__name__},
        )
        raise _error(500, "Failed to send test email")

    logger.info("Test email sent", extra={"email": to})
    return {"message": "Test email sent", "to": to}


# --- Security + Version Headers Middleware ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security and version headers to all responses."""
    response = await call_next(request)
    response.headers["X-VerifyIt-Version"] = settings.APP_VERSION
    response.headers["X-Ruleset-Version"] = RULESET_VERSION
    response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path.startswith("/static") or path == "/api/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=settings.HOST, port=settings.PORT)
