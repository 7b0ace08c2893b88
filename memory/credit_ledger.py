"""Local credit balance with optimistic spending against the credits store."""
from __future__ import annotations

import logging
from typing import Optional

from logic.errors import InsufficientCreditsError, StoreError
from logic.optimistic import optimistic_update
from tools.credits_store import CreditsStore
from tryon_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)

CREDIT_SYNC_FAILED_MESSAGE = "Couldn't save your credit usage."


class CreditLedger:
    """Displayed balance for one user.

    The displayed value may lag the store (webhook top-ups land out of band)
    until the next :meth:`refresh` or confirmed spend.
    """

    def __init__(self, user_id: str, store: CreditsStore, balance: Optional[int] = None) -> None:
        self.user_id = user_id
        self.store = store
        self._balance = store.get_credits(user_id) if balance is None else max(0, balance)

    @property
    def balance(self) -> int:
        return self._balance

    def has_credits(self) -> bool:
        return self._balance > 0

    def require_credit(self, message: str = "You are out of credits for this action.") -> None:
        if not self.has_credits():
            raise InsufficientCreditsError(message)

    def refresh(self) -> int:
        self._balance = self.store.get_credits(self.user_id)
        return self._balance

    def _commit_spend(self) -> int:
        try:
            return self.store.decrement_credits(self.user_id)
        except NotImplementedError:
            # Re-read so top-ups landed since the last refresh are kept.
            current = self.store.get_credits(self.user_id)
            return self.store.set_credits(self.user_id, max(0, current - 1))

    def use_credit(self) -> Optional[str]:
        """Spend one credit after a successful generation.

        Returns a notice message when the store rejected the update; the local
        balance is restored to its previous value in that case.
        """

        previous = self._balance
        optimistic = max(0, previous - 1)

        def apply() -> int:
            self._balance = optimistic
            return previous

        def rollback(snapshot: int) -> None:
            self._balance = snapshot

        try:
            confirmed = optimistic_update(apply, self._commit_spend, rollback)
        except StoreError as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "credit_commit_failed",
                user_id=self.user_id,
                balance=self._balance,
                error=str(exc),
            )
            return CREDIT_SYNC_FAILED_MESSAGE

        if confirmed != optimistic:
            log_event(
                LOGGER,
                logging.INFO,
                "credit_balance_reconciled",
                user_id=self.user_id,
                local=optimistic,
                server=confirmed,
            )
        self._balance = max(0, confirmed)
        return None


__all__ = ["CREDIT_SYNC_FAILED_MESSAGE", "CreditLedger"]
