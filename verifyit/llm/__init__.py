"""
LLM Provider — abstract interface.

Every external model backend implements generate(); generate_json()
layers structured-output extraction on top so callers receive a dict
(or a ValueError) regardless of how the model wrapped its reply.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from verifyit.parsing import extract_json


class LLMProvider(ABC):
    """Abstract base for LLM backends."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier reported in result provenance."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        """Return the model's raw text reply. Raises on transport failure."""

    async def generate_json(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: float = 0.2,
    ) -> dict:
        text = await self.generate(
            prompt,
            system_instruction=system_instruction,
            temperature=temperature,
            json_mode=True,
        )
        parsed = extract_json(text)
        if parsed is None:
            raise ValueError("LLM reply did not contain a recognisable result")
        return parsed
