"""Turn a surebet-calculator screenshot into a structured slip via a vision model."""

from __future__ import annotations

import json
import re
import time
from typing import Any

from loguru import logger

from app.core.config import Settings, get_settings
from app.domain import ExtractedSlip
from app.services.llm import (
    ExtractionError,
    ExtractionRequest,
    LLMProvider,
    SlipImage,
    get_provider,
)

from .normalize import format_slip_text, slip_from_structured

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_DATA_URL_MEDIA_TYPES = (
    ("data:image/png", "image/png"),
    ("data:image/webp", "image/webp"),
    ("data:image/gif", "image/gif"),
    ("data:image/jpeg", "image/jpeg"),
    ("data:image/jpg", "image/jpeg"),
)
_MAGIC_PREFIXES = (
    ("iVBOR", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
    ("/9j/", "image/jpeg"),
)
_DEFAULT_MEDIA_TYPE = "image/jpeg"

EXTRACTION_PROMPT = """\
Analyse this screenshot of a surebet calculator and extract EXACTLY the data shown.

1. DATE AND TIME: at the top look for "Evento em X dia(s)" or "Evento em X horas"
   followed by parentheses holding the real date and time (YYYY-MM-DD HH:MM-XX:XX).
   Use only the values inside those parentheses and convert YYYY-MM-DD to DD/MM/YYYY.
   Example: "Evento em 1 dia (2025-09-27 13:00-03:00)" -> "27/09/2025" and "13:00".
2. TEAMS: the two names in the title, usually separated by "–".
3. SPORT/LEAGUE: the text just below the teams (e.g. "Beisebol / Estados Unidos - MLB").
4. BETTING HOUSES: the names on the table rows (e.g. "Pinnacle (BR)").
5. BET TYPES: copy the "Chance" column verbatim, keeping symbols such as ≥ ≤ + -,
   accents and ordinals ("2º o time").
6. ODDS: the numbers after the bet type.
7. STAKES: the "Aposta" column.
8. PROFIT: the "Lucro" column.
9. PERCENTAGE: the exact percentage in the top right corner, near "ROI".

Return ONLY valid JSON in this shape:

{
  "gameDate": "DD/MM/YYYY",
  "gameTime": "HH:MM",
  "sport": "sport",
  "league": "league",
  "teamA": "team 1",
  "teamB": "team 2",
  "betA": {"bettingHouse": "house 1", "betType": "exact bet type", "odds": "1.XX", "stake": "XXXX.XX", "profit": "XXX.XX"},
  "betB": {"bettingHouse": "house 2", "betType": "exact bet type", "odds": "1.XX", "stake": "XXXX.XX", "profit": "XXX.XX"},
  "totalProfitPercentage": "X.XX%"
}

Use only real values from the image, never examples. Use dots as decimal separators.
Never simplify or translate the bet type text.
"""


def strip_data_url(image_base64: str) -> str:
    """Return the bare base64 payload of a ``data:`` URL (or the input unchanged)."""

    if "base64," in image_base64:
        return image_base64.split("base64,", 1)[1]
    return image_base64


def detect_media_type(image_base64: str) -> str:
    """Guess the image media type from a data-URL prefix or the base64 magic bytes."""

    for prefix, media_type in _DATA_URL_MEDIA_TYPES:
        if prefix in image_base64:
            return media_type
    payload = strip_data_url(image_base64)
    for magic, media_type in _MAGIC_PREFIXES:
        if payload.startswith(magic):
            return media_type
    return _DEFAULT_MEDIA_TYPE


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the outermost ``{...}`` object embedded in a model reply."""

    match = _JSON_OBJECT_RE.search(text or "")
    if match is None:
        raise ExtractionError(f"No JSON found in model response: {text[:200] if text else ''}")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"No JSON found in model response: {exc}") from exc
    if not isinstance(payload, dict):
        raise ExtractionError("No JSON found in model response: reply is not an object")
    return payload


class SlipExtractionService:
    """Run one vision-model call per screenshot and map the reply onto a slip."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        provider: LLMProvider | None = None,
        client: Any | None = None,
    ):
        self._settings = settings or get_settings()
        self._provider = provider
        self._client = client

    def _resolve_provider(self) -> LLMProvider:
        if self._provider is not None:
            return self._provider
        return get_provider(self._settings.llm_default_provider)

    def extract_payload(self, image_base64: str) -> dict[str, Any]:
        """Return the raw JSON object the model produced for ``image_base64``."""

        if not image_base64 or not image_base64.strip():
            raise ValueError("Image data is required")

        provider = self._resolve_provider()
        client = self._client
        if client is None:
            provider.ensure_ready(self._settings)
            client = provider.build_client(self._settings)

        request = ExtractionRequest(
            model=self._settings.extraction_model or provider.default_model(),
            prompt=EXTRACTION_PROMPT,
            image=SlipImage(
                data=strip_data_url(image_base64.strip()),
                media_type=detect_media_type(image_base64),
            ),
            max_tokens=self._settings.extraction_max_tokens,
            timeout_seconds=self._settings.extraction_timeout_seconds,
        )

        logger.info(
            "Extracting slip provider={} model={} media_type={} size={}",
            provider.name,
            request.model,
            request.image.media_type,
            len(request.image.data),
        )
        started = time.perf_counter()
        response = provider.invoke(client, request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        text = provider.response_text(response)
        logger.debug("Model replied in {:.0f}ms: {}", elapsed_ms, text[:200])

        payload = extract_json_object(text)
        logger.info(
            "Extracted slip {} vs {} on {} {}",
            payload.get("teamA", ""),
            payload.get("teamB", ""),
            payload.get("gameDate", ""),
            payload.get("gameTime", ""),
        )
        return payload

    def analyze(self, image_base64: str) -> ExtractedSlip:
        return slip_from_structured(self.extract_payload(image_base64))

    def raw_text(self, image_base64: str) -> str:
        return format_slip_text(self.extract_payload(image_base64))


__all__ = [
    "EXTRACTION_PROMPT",
    "SlipExtractionService",
    "detect_media_type",
    "extract_json_object",
    "strip_data_url",
]
