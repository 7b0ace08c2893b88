"""Outfit suggestion backends used by the style mixtape."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import BaseModel, Field, ValidationError

from logic.errors import GenerationError
from logic.prompts import stylist_prompt
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class _SuggestionPayload(BaseModel):
    outfit_ids: List[str] = Field(default_factory=list, alias="outfitIds")


def parse_suggestion(raw_text: str) -> List[str]:
    """Parse the stylist JSON answer into an id list."""

    cleaned = _CODE_FENCE.sub("", raw_text.strip())
    try:
        payload = _SuggestionPayload.model_validate_json(cleaned)
    except ValidationError as exc:
        LOGGER.error("Stylist payload schema validation failed", exc_info=exc)
        raise GenerationError(
            "malformed", "The AI stylist had a creative block. Please try a different theme."
        ) from exc
    return payload.outfit_ids


class OutfitSuggester(ABC):
    @abstractmethod
    def suggest(self, items: Sequence[Dict[str, str]], theme: str) -> List[str]:
        """Return wardrobe ids forming an outfit; an empty list means no match."""


class GeminiOutfitSuggester(OutfitSuggester):
    """Gemini text model in JSON mode."""

    def __init__(self, model: str, api_key: str | None = None, timeout_seconds: float = 30.0) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model
        self.timeout_seconds = timeout_seconds
        self._model = genai.GenerativeModel(model)

    @instrument_call("suggest_outfit")
    def suggest(self, items: Sequence[Dict[str, str]], theme: str) -> List[str]:
        try:
            response = self._model.generate_content(
                stylist_prompt(items, theme),
                generation_config=genai.GenerationConfig(response_mime_type="application/json"),
                request_options={"timeout": self.timeout_seconds},
            )
            raw_text = response.text
        except ValueError as exc:
            # ``response.text`` raises when the answer has no text part.
            raise GenerationError("malformed", "The AI stylist returned an empty answer.") from exc
        except google_exceptions.GoogleAPIError as exc:
            LOGGER.error("Stylist service unreachable", exc_info=exc)
            raise GenerationError("transport", f"Stylist service error: {exc}") from exc
        return parse_suggestion(raw_text)


class MockOutfitSuggester(OutfitSuggester):
    """Offline suggester: first clothing item plus up to two accessories."""

    def __init__(self, fixed_ids: List[str] | None = None) -> None:
        self.fixed_ids = fixed_ids
        self.calls: List[dict] = []

    def suggest(self, items: Sequence[Dict[str, str]], theme: str) -> List[str]:
        self.calls.append({"items": list(items), "theme": theme})
        if self.fixed_ids is not None:
            return list(self.fixed_ids)
        clothing = [item["id"] for item in items if item.get("category") != "accessory"][:1]
        accessories = [item["id"] for item in items if item.get("category") == "accessory"][:2]
        return clothing + accessories


__all__ = ["GeminiOutfitSuggester", "MockOutfitSuggester", "OutfitSuggester", "parse_suggestion"]
