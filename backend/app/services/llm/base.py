"""Provider contracts for multimodal slip extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from app.core.config import Settings


class ExtractionError(Exception):
    """Raised when the model call fails or its reply holds no usable JSON."""


class ProviderNotConfiguredError(ExtractionError):
    """Raised when the selected provider has no credentials."""


@dataclass(slots=True, frozen=True)
class SlipImage:
    """Base64 image payload with its detected media type."""

    data: str
    media_type: str


@dataclass(slots=True, frozen=True)
class ExtractionRequest:
    model: str
    prompt: str
    image: SlipImage
    max_tokens: int
    timeout_seconds: float = 60.0


class LLMProvider(Protocol):
    """Interface implemented by provider adapters."""

    name: str
    require_api_key: bool

    def ensure_ready(self, settings: Settings) -> None:
        """Validate credentials or raise :class:`ProviderNotConfiguredError`."""

    def build_client(self, settings: Settings) -> Any:
        """Return a provider client for the resolved settings."""

    def default_model(self) -> str:
        """Return the provider's default vision model."""

    def invoke(self, client: Any, request: ExtractionRequest) -> Any:
        """Execute the model call and return the raw response."""

    def response_text(self, response: Any) -> str:
        """Return the text body of a provider response."""


__all__ = [
    "ExtractionError",
    "ExtractionRequest",
    "LLMProvider",
    "ProviderNotConfiguredError",
    "SlipImage",
]
