"""Google Gemini provider hooks."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Any, Mapping

import google.generativeai as genai
from loguru import logger

from app.core.config import Settings
from .base import (
    ExtractionError,
    ExtractionRequest,
    LLMProvider,
    ProviderNotConfiguredError,
)

_DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(slots=True)
class _GeminiClient:
    api_key: str
    client_options: Mapping[str, Any] | None = None

    def configure(self) -> None:
        options = dict(self.client_options or {})
        genai.configure(api_key=self.api_key, **options)


@dataclass(slots=True)
class GeminiProvider(LLMProvider):
    name: str = "gemini"
    require_api_key: bool = True

    def _resolve_api_key(self, settings: Settings) -> str | None:
        candidate = getattr(settings, "gemini_api_key", None)
        if not candidate:
            return None
        value = candidate.strip()
        return value or None

    def ensure_ready(self, settings: Settings) -> None:
        if not self.require_api_key:
            return
        if self._resolve_api_key(settings):
            return
        raise ProviderNotConfiguredError("GEMINI_API_KEY is not configured")

    def build_client(self, settings: Settings) -> Any:
        api_key = self._resolve_api_key(settings)
        if not api_key:
            raise ProviderNotConfiguredError("GEMINI_API_KEY is not configured")
        return _GeminiClient(api_key=api_key)

    def default_model(self) -> str:
        return _DEFAULT_MODEL

    def invoke(self, client: Any, request: ExtractionRequest) -> Any:
        if not isinstance(client, _GeminiClient):
            raise ExtractionError("Gemini client is not configured correctly")
        try:
            image_bytes = base64.b64decode(request.image.data, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ExtractionError("Image payload is not valid base64") from exc

        client.configure()
        model = genai.GenerativeModel(request.model)
        try:
            return model.generate_content(
                [
                    request.prompt,
                    {"mime_type": request.image.media_type, "data": image_bytes},
                ],
                generation_config={
                    "response_mime_type": "application/json",
                    "max_output_tokens": request.max_tokens,
                },
                request_options={"timeout": request.timeout_seconds},
            )
        except Exception as exc:
            logger.warning("Gemini extraction failed model={} error={}", request.model, exc)
            raise ExtractionError(f"Gemini request failed: {exc}") from exc

    def response_text(self, response: Any) -> str:
        try:
            text_candidate = getattr(response, "text", None)
        except ValueError:
            # ``text`` raises when the candidate was blocked or has no parts.
            text_candidate = None
        if isinstance(text_candidate, str) and text_candidate.strip():
            return text_candidate
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                text = getattr(part, "text", None)
                if isinstance(text, str) and text.strip():
                    return text
        return ""


__all__ = ["GeminiProvider"]
