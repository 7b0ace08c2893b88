"""Load images referenced by URL into in-memory payloads."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import requests

from logic.errors import GenerationError, InvalidInputError
from models.image import ALLOWED_MIME_TYPES, ImageData, is_data_url
from tools.observability import instrument_call

logger = logging.getLogger(__name__)


def validate_image(image: ImageData) -> ImageData:
    """Reject empty payloads and non-image content types."""

    if image.mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidInputError(f"Unsupported image type: {image.mime_type}")
    if not image.data:
        raise InvalidInputError("The image file is empty")
    return image


def parse_image_data_url(data_url: str) -> ImageData:
    """Decode an uploaded ``data:`` URL into a validated :class:`ImageData`."""

    try:
        image = ImageData.from_data_url(data_url)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc
    return validate_image(image)


def _validate_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidInputError(f"Unsupported or invalid image URL: {url}")


@instrument_call("fetch_image")
def fetch_image(url: str, timeout: Optional[float] = 10.0) -> ImageData:
    """Download a hosted image.

    Raises:
        InvalidInputError: If the URL is not HTTP/HTTPS or the body is not an image.
        GenerationError: ``transport`` kind for network issues or non-2xx responses.
    """

    _validate_url(url)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        logger.error("Network error fetching image", extra={"error": str(exc)})
        raise GenerationError("transport", f"Network error fetching image: {exc}") from exc

    if not 200 <= response.status_code < 300:
        logger.warning("Non-success status when fetching image", extra={"status_code": response.status_code})
        raise GenerationError("transport", f"Failed to fetch image: HTTP {response.status_code}")

    mime_type = (response.headers.get("content-type") or "image/png").split(";")[0].strip().lower()
    return validate_image(ImageData(mime_type=mime_type, data=response.content))


def load_image(url: str, timeout: Optional[float] = 10.0) -> ImageData:
    """Resolve either an inline ``data:`` URL or a hosted image URL."""

    if is_data_url(url):
        return parse_image_data_url(url)
    return fetch_image(url, timeout=timeout)


__all__ = ["fetch_image", "load_image", "parse_image_data_url", "validate_image"]
