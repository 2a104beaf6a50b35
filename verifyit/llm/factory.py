"""
LLM provider factory.
"""

from typing import Optional

from verifyit.llm import LLMProvider


def get_provider(
    provider_name: str = "gemini",
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> LLMProvider:
    """Factory — returns the configured LLM provider."""
    if provider_name == "gemini":
        from verifyit.llm.gemini import GeminiProvider
        return GeminiProvider(api_key=api_key, model=model)
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
