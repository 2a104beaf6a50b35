"""
API Schemas — Request and Response Models

Pydantic models for the VerifyIt HTTP API. Field names follow the
camelCase wire format the web client consumes.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field


# ============================================================
# VERIFY
# ============================================================

class VerifyRequest(BaseModel):
    """POST /api/verify request body. Emptiness and length are checked by the route."""
    text: Optional[str] = Field(None, description="Text or phone/SMS content to verify.")

    model_config = {"json_schema_extra": {"examples": [
        {"text": "Your SIM will be blocked. Share OTP immediately to verify: bit.ly/xyz"},
    ]}}


class FraudAlertStatus(BaseModel):
    attempted: bool
    sent: bool
    recipientsCount: int
    reason: Optional[str] = None
    detail: Optional[list[dict]] = None


class VerifyResponse(BaseModel):
    """POST /api/verify response body."""
    score: int = Field(..., ge=0, le=100)
    verdict: str
    analysis: str
    credibilityScore: int = Field(..., ge=0, le=100)
    suspiciousScore: int = Field(..., ge=0, le=100)
    emotionalScore: int = Field(..., ge=0, le=100)
    structureScore: int = Field(..., ge=0, le=100)
    sourceScore: int = Field(..., ge=0, le=100)
    indicators: list[str]
    recommendations: list[str]
    contentType: str
    aiProvider: str
    aiModel: str
    timestamp: str
    textLength: int
    analysisVersion: str
    fraudAlert: Optional[FraudAlertStatus] = None


# ============================================================
# SERVICE
# ============================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    aiEnabled: bool
    analysisType: str
    activeSubscribers: int


class AIStatusResponse(BaseModel):
    ok: bool
    mode: str
    provider: Optional[str] = None
    model: Optional[str] = None
    keyConfigured: bool
    reply: Optional[str] = None
    error: Optional[str] = None


# ============================================================
# NEWSLETTER
# ============================================================

class SubscribeRequest(BaseModel):
    email: Optional[str] = None


class SubscribeResponse(BaseModel):
    message: str


class HighRiskTestRequest(BaseModel):
    text: Optional[str] = None
    email: Optional[str] = None


class HighRiskTestResponse(BaseModel):
    message: str
    fraudAlert: FraudAlertStatus


class SendTestRequest(BaseModel):
    to: Optional[str] = None
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None


class SendTestResponse(BaseModel):
    message: str
    to: str


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
