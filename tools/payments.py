"""Credit top-ups triggered by the payment provider's checkout webhook.

Signature verification happens upstream; this module only validates the
event shape and applies the top-up.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError, field_validator

from logic.errors import InvalidInputError
from tools.credits_store import CreditsStore
from tryon_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

RELEVANT_EVENTS = {"checkout.session.completed"}


class CheckoutMetadata(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)
    credit_amount: int = Field(alias="creditAmount")

    @field_validator("credit_amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> int:
        # Provider metadata values arrive as strings.
        return int(str(value).strip())

    @field_validator("credit_amount")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("creditAmount must be positive")
        return value


class _CheckoutObject(BaseModel):
    metadata: Dict[str, Any] = Field(default_factory=dict)


class _CheckoutData(BaseModel):
    object: _CheckoutObject


class CheckoutEvent(BaseModel):
    type: str
    data: _CheckoutData


def handle_checkout_event(payload: Dict[str, Any], store: CreditsStore) -> Dict[str, Any]:
    """Apply a verified checkout event.

    Irrelevant event types are acknowledged without side effects. Invalid
    metadata raises :class:`InvalidInputError`.
    """

    try:
        event = CheckoutEvent.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(f"Malformed webhook payload: {exc.error_count()} error(s)") from exc

    if event.type not in RELEVANT_EVENTS:
        log_event(LOGGER, logging.INFO, "webhook_event_ignored", event_type=event.type)
        return {"status": "ignored", "event_type": event.type}

    try:
        metadata = CheckoutMetadata.model_validate(event.data.object.metadata)
    except ValidationError as exc:
        log_event(LOGGER, logging.WARNING, "webhook_metadata_invalid", event_type=event.type)
        raise InvalidInputError("Invalid metadata") from exc

    balance = store.add_credits(metadata.user_id, metadata.credit_amount)
    log_event(
        LOGGER,
        logging.INFO,
        "credits_topped_up",
        user_id=metadata.user_id,
        amount=metadata.credit_amount,
    )
    return {"status": "ok", "credits": balance, "added": metadata.credit_amount}


__all__ = ["CheckoutEvent", "CheckoutMetadata", "RELEVANT_EVENTS", "handle_checkout_event"]
