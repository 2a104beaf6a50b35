"""
Gemini Provider — Google Gemini API implementation.

Uses the google.genai SDK. The client is created lazily, so the app
starts without an API key and only fails on an actual model call.

Each generate() is a single attempt: a failure surfaces immediately and
the analyzer degrades to the local heuristic. A circuit breaker stops
calling the API for a while after repeated failures.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from google import genai
from google.genai import types

from verifyit.llm import LLMProvider

logger = logging.getLogger("verifyit.llm.gemini")

DEFAULT_MODEL = "gemini-2.5-flash"

# Circuit breaker settings
_CB_FAILURE_THRESHOLD = 3   # Open after this many consecutive failures
_CB_RECOVERY_TIMEOUT = 60   # Seconds before trying again (half-open)


class CircuitBreaker:
    """Simple circuit breaker: closed → open → half-open → closed.

    While open, generate() raises CircuitOpenError immediately so the
    analyzer answers from the local heuristic without waiting on the API.
    """

    def __init__(
        self,
        failure_threshold: int = _CB_FAILURE_THRESHOLD,
        recovery_timeout: float = _CB_RECOVERY_TIMEOUT,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._failures = 0
        self._last_failure_time: float = 0
        self._state = "closed"  # closed | open | half-open

    @property
    def state(self) -> str:
        if self._state == "open":
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = "half-open"
        return self._state

    def record_success(self) -> None:
        self._failures = 0
        self._state = "closed"

    def record_failure(self) -> None:
        self._failures += 1
        self._last_failure_time = time.monotonic()
        if self._failures >= self.failure_threshold:
            self._state = "open"
            logger.warning(
                "Circuit breaker OPEN after %d consecutive Gemini failures; "
                "local-only scoring for %ds.",
                self._failures, self.recovery_timeout,
            )

    @property
    def is_open(self) -> bool:
        return self.state == "open"


class CircuitOpenError(Exception):
    """Raised when the circuit breaker is open."""


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider with a circuit breaker."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key or os.getenv("GEMINI_API_KEY", "")
        self._model = model or os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
        self._client: Optional[genai.Client] = None
        self.circuit_breaker = CircuitBreaker()

    @property
    def model_name(self) -> str:
        return self._model

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise RuntimeError(
                    "GEMINI_API_KEY not set. Get one from "
                    "https://aistudio.google.com/apikey"
                )
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        if self.circuit_breaker.is_open:
            raise CircuitOpenError(
                "Gemini circuit breaker is open; falling back to local scoring."
            )

        config = types.GenerateContentConfig(
            temperature=temperature,
            system_instruction=system_instruction,
        )
        if json_mode:
            config.response_mime_type = "application/json"

        client = self._get_client()
        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except Exception:
            self.circuit_breaker.record_failure()
            raise

        text = response.text
        if not text:
            self.circuit_breaker.record_failure()
            raise ValueError(f"Empty response from {self._model}")

        self.circuit_breaker.record_success()
        return text
