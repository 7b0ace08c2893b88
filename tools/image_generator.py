"""Image generation backends behind a narrow ``generate`` contract."""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from logic.errors import GenerationError
from models.image import ImageData
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)


class ImageGenerator(ABC):
    """Turns base images plus an instruction into exactly one image."""

    @abstractmethod
    def generate(self, images: Sequence[ImageData], instruction: str) -> ImageData:
        """Return the generated image or raise :class:`GenerationError`."""


def _enum_name(value: Any) -> str:
    return str(getattr(value, "name", value) or "")


def extract_image(response: Any) -> ImageData:
    """Pick the first inline image out of a ``generate_content`` response.

    Blocked prompts and safety stops raise ``blocked``; a text-only answer
    raises ``no_image``.
    """

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
    if block_reason and _enum_name(block_reason) != "BLOCK_REASON_UNSPECIFIED":
        raise GenerationError("blocked", f"Request was blocked. Reason: {_enum_name(block_reason)}.")

    candidates = list(getattr(response, "candidates", None) or [])
    text_parts: List[str] = []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            blob = getattr(part, "inline_data", None)
            if blob is not None and getattr(blob, "data", None):
                return ImageData(mime_type=blob.mime_type or "image/png", data=bytes(blob.data))
            text = getattr(part, "text", None)
            if text:
                text_parts.append(text.strip())

    finish_reason = _enum_name(getattr(candidates[0], "finish_reason", None)) if candidates else ""
    if finish_reason and finish_reason not in {"STOP", "FINISH_REASON_UNSPECIFIED"}:
        raise GenerationError(
            "blocked",
            f"Image generation stopped unexpectedly. Reason: {finish_reason}. "
            "This often relates to safety settings.",
        )

    feedback_text = " ".join(part for part in text_parts if part)
    if feedback_text:
        raise GenerationError("no_image", f"The AI model did not return an image. It responded: \"{feedback_text}\"")
    raise GenerationError(
        "no_image",
        "The AI model did not return an image. This can happen due to safety filters or if "
        "the request is too complex. Please try a different image.",
    )


class GeminiImageGenerator(ImageGenerator):
    """Gemini image model accessed through ``google-generativeai``."""

    def __init__(self, model: str, api_key: str | None = None, timeout_seconds: float = 60.0) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model
        self.timeout_seconds = timeout_seconds
        self._model = genai.GenerativeModel(model)

    @instrument_call("generate_image")
    def generate(self, images: Sequence[ImageData], instruction: str) -> ImageData:
        contents: List[Any] = [image.as_part() for image in images]
        contents.append(instruction)
        try:
            response = self._model.generate_content(
                contents, request_options={"timeout": self.timeout_seconds}
            )
        except google_exceptions.InvalidArgument as exc:
            raise GenerationError("malformed", f"The image service rejected the request: {exc.message}") from exc
        except google_exceptions.GoogleAPIError as exc:
            LOGGER.error("Image service unreachable", exc_info=exc)
            raise GenerationError("transport", f"Image service error: {exc}") from exc
        return extract_image(response)


class MockImageGenerator(ImageGenerator):
    """Offline deterministic generator for local runs and tests.

    Each result is a tiny PNG-typed payload derived from the inputs so that
    different instructions yield different images.
    """

    def __init__(self) -> None:
        self.calls: List[dict] = []

    def generate(self, images: Sequence[ImageData], instruction: str) -> ImageData:
        self.calls.append({"images": list(images), "instruction": instruction})
        digest = hashlib.sha256(instruction.encode("utf-8"))
        for image in images:
            digest.update(image.data)
        digest.update(str(len(self.calls)).encode("ascii"))
        LOGGER.info("Returning mock image", extra={"call_count": len(self.calls)})
        return ImageData(mime_type="image/png", data=digest.digest())


__all__ = ["GeminiImageGenerator", "ImageGenerator", "MockImageGenerator", "extract_image"]
