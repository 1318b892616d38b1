"""Vision providers able to read a slip screenshot, keyed by settings name."""

from __future__ import annotations

from .base import LLMProvider, ProviderNotConfiguredError
from .gemini import GeminiProvider
from .openai import OpenAIProvider


class UnknownLLMProviderError(ProviderNotConfiguredError):
    """Raised when ``LLM_DEFAULT_PROVIDER`` names no known slip reader."""


_PROVIDERS: dict[str, LLMProvider] = {
    provider.name: provider for provider in (OpenAIProvider(), GeminiProvider())
}


def get_provider(name: str | None) -> LLMProvider:
    key = (name or "").strip().lower()
    provider = _PROVIDERS.get(key)
    if provider is None:
        raise UnknownLLMProviderError(
            f"Extraction provider '{name}' is not available; choose one of {', '.join(available_providers())}"
        )
    return provider


def available_providers() -> tuple[str, ...]:
    return tuple(sorted(_PROVIDERS))


__all__ = [
    "UnknownLLMProviderError",
    "available_providers",
    "get_provider",
]
