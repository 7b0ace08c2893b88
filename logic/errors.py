"""Error taxonomy for try-on actions and the messages users see."""

from __future__ import annotations

from typing import Literal

GenerationErrorKind = Literal["blocked", "no_image", "malformed", "transport"]


class TryOnError(Exception):
    """Base class for failures surfaced to the user as a notice."""


class GenerationError(TryOnError):
    """The remote generator refused, returned no image or could not be reached."""

    def __init__(self, kind: GenerationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def retriable(self) -> bool:
        return self.kind == "transport"


class InsufficientCreditsError(TryOnError):
    """Raised before any remote call when the balance is exhausted."""


class InvalidInputError(TryOnError, ValueError):
    """Malformed image or request payload, rejected before the credit check."""


class StoreError(TryOnError):
    """Persistence or credits store failure."""


class SuggestionUnavailableError(TryOnError):
    """The stylist found no wardrobe combination for the requested theme."""


def friendly_error_message(error: BaseException, context: str) -> str:
    """Compose a short ``context. detail`` message for a notice."""

    if isinstance(error, InsufficientCreditsError | SuggestionUnavailableError):
        return str(error)
    if isinstance(error, GenerationError):
        if error.kind == "transport":
            return f"{context}. The image service could not be reached, please try again."
        return f"{context}. {error}"
    detail = str(error).strip()
    if not detail:
        return f"{context}."
    return f"{context}. {detail}"


__all__ = [
    "GenerationError",
    "GenerationErrorKind",
    "InsufficientCreditsError",
    "InvalidInputError",
    "StoreError",
    "SuggestionUnavailableError",
    "TryOnError",
    "friendly_error_message",
]
