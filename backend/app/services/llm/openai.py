"""OpenAI provider hooks."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from openai import APIError, APIStatusError, OpenAI
from loguru import logger

from app.core.config import Settings

from .base import (
    ExtractionError,
    ExtractionRequest,
    LLMProvider,
    ProviderNotConfiguredError,
)

_DEFAULT_MODEL = "gpt-4o-mini"


def _exception_summary(exc: Exception) -> str:
    parts = [exc.__class__.__name__]
    if isinstance(exc, APIStatusError):
        parts.append(f"status={exc.status_code}")
        request_id = exc.response.headers.get("x-request-id")
        if request_id:
            parts.append(f"request_id={request_id}")
    message = str(exc)
    if message:
        parts.append(message)
    return ": ".join([parts[0], " ".join(parts[1:])]) if len(parts) > 1 else parts[0]


@lru_cache(maxsize=4)
def _vision_client(
    api_key: str,
    base_url: str | None,
    organization: str | None,
    project: str | None,
    timeout: float,
) -> OpenAI:
    # One attempt per screenshot; the user retries from the upload screen.
    return OpenAI(
        api_key=api_key,
        base_url=base_url,
        organization=organization,
        project=project,
        timeout=timeout,
        max_retries=0,
    )


@dataclass(slots=True)
class OpenAIProvider(LLMProvider):
    name: str = "openai"
    require_api_key: bool = True

    def ensure_ready(self, settings: Settings) -> None:
        if not self.require_api_key:
            return
        if settings.openai_api_key:
            return
        raise ProviderNotConfiguredError("OPENAI_API_KEY is not configured")

    def build_client(self, settings: Settings) -> Any:
        self.ensure_ready(settings)
        base_url = str(settings.openai_api_base) if settings.openai_api_base else None
        return _vision_client(
            settings.openai_api_key,
            base_url,
            settings.openai_org_id,
            settings.openai_project_id,
            settings.extraction_timeout_seconds,
        )

    def default_model(self) -> str:
        return _DEFAULT_MODEL

    def invoke(self, client: Any, request: ExtractionRequest) -> Any:
        data_url = f"data:{request.image.media_type};base64,{request.image.data}"
        try:
            return client.chat.completions.create(
                model=request.model,
                max_tokens=request.max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": request.prompt},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
            )
        except APIError as exc:
            summary = _exception_summary(exc)
            logger.warning("OpenAI extraction failed model={} error={}", request.model, summary)
            raise ExtractionError(summary) from exc

    def response_text(self, response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        for choice in choices:
            message = getattr(choice, "message", None)
            content = getattr(message, "content", None)
            if isinstance(content, str) and content.strip():
                return content
        return ""


__all__ = ["OpenAIProvider"]
