"""
VerifyIt Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    APP_VERSION: str = "3.0"

    # --- LLM Provider ---
    LLM_PROVIDER: str = os.getenv("VERIFYIT_LLM_PROVIDER", "gemini")
    AI_ENABLED: bool = _env_bool("VERIFYIT_AI_ENABLED", "true")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # --- Alerting ---
    HIGH_RISK_THRESHOLD: int = int(os.getenv("HIGH_RISK_THRESHOLD", "25"))
    FRAUD_ALERT_COOLDOWN: int = int(os.getenv("FRAUD_ALERT_COOLDOWN", "3600"))
    NEWSLETTER_ENABLED: bool = _env_bool("NEWSLETTER_ENABLED", "false")

    # --- Email ---
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")
    EMAIL_FROM_NAME: str = os.getenv("EMAIL_FROM_NAME", "VerifyIt")
    EMAIL_FROM_ADDRESS: str = os.getenv("EMAIL_FROM_ADDRESS", "")

    # --- Storage ---
    DB_PATH: str = os.getenv("VERIFYIT_DB_PATH", "verifyit.db")

    # --- Server ---
    HOST: str = os.getenv("VERIFYIT_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("VERIFYIT_PORT", "3000"))
    MAX_TEXT_LENGTH: int = int(os.getenv("VERIFYIT_MAX_TEXT_LENGTH", "10000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("VERIFYIT_CORS_ORIGINS", "*")

    @property
    def ai_configured(self) -> bool:
        return self.AI_ENABLED and bool(self.GEMINI_API_KEY)


settings = Settings()
