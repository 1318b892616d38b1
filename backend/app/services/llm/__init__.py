"""LLM provider registry used for slip extraction."""

from .registry import (
    UnknownLLMProviderError,
    available_providers,
    get_provider,
)
from .base import (
    ExtractionError,
    ExtractionRequest,
    LLMProvider,
    ProviderNotConfiguredError,
    SlipImage,
)

__all__ = [
    "ExtractionError",
    "ExtractionRequest",
    "LLMProvider",
    "ProviderNotConfiguredError",
    "SlipImage",
    "UnknownLLMProviderError",
    "available_providers",
    "get_provider",
]
