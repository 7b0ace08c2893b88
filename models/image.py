"""In-memory image payloads and data-URL conversion."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

_DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+\-]+/[\w.+\-]+);base64,(?P<data>.*)$", re.DOTALL)

ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/avif",
    "image/heic",
    "image/heif",
}


@dataclass(frozen=True)
class ImageData:
    mime_type: str
    data: bytes

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def as_part(self) -> dict:
        """Inline blob understood by ``GenerativeModel.generate_content``."""

        return {"mime_type": self.mime_type, "data": self.data}

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageData":
        match = _DATA_URL_PATTERN.match(data_url.strip())
        if not match:
            raise ValueError("Invalid data URL")
        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Data URL payload is not valid base64") from exc
        return cls(mime_type=match.group("mime").lower(), data=data)


def is_data_url(value: str) -> bool:
    return value.startswith("data:")


__all__ = ["ALLOWED_MIME_TYPES", "ImageData", "is_data_url"]
