"""Try-on app bootstrap."""

import logging
from typing import Any, Dict, Optional

from agents.orchestrator import GenerationOrchestrator
from memory.credit_ledger import CreditLedger
from memory.session_state import SessionRegistry, TryOnSession
from tools.credits_store import CreditsStore, SQLiteCreditsStore
from tools.image_generator import GeminiImageGenerator, ImageGenerator, MockImageGenerator
from tools.looks_store import LooksStore, SQLiteLooksStore
from tools.outfit_suggester import GeminiOutfitSuggester, MockOutfitSuggester, OutfitSuggester
from tools.payments import handle_checkout_event
from tryon_app.config import TryOnConfig
from tryon_app.logging_config import configure_logging, get_logger, log_event, operation_context


LOGGER = get_logger(__name__)


class VirtualTryOnApp:
    """Wires together stores, remote services and the orchestrator."""

    def __init__(
        self,
        config: TryOnConfig | None = None,
        *,
        generator: ImageGenerator | None = None,
        suggester: OutfitSuggester | None = None,
        credits_store: CreditsStore | None = None,
        looks_store: LooksStore | None = None,
    ) -> None:
        self.config = config or TryOnConfig.from_env()
        configure_logging()

        self.credits_store = credits_store or SQLiteCreditsStore(
            self.config.database_path, starting_credits=self.config.starting_credits
        )
        self.looks_store = looks_store or SQLiteLooksStore(self.config.database_path)
        self.generator = generator or self._build_generator()
        self.suggester = suggester or self._build_suggester()
        self.orchestrator = GenerationOrchestrator(
            generator=self.generator,
            suggester=self.suggester,
            looks_store=self.looks_store,
            fetch_timeout=self.config.request_timeout,
        )
        self.sessions = SessionRegistry()

    def _use_mocks(self) -> bool:
        return self.config.use_mock_services or not self.config.api_key

    def _build_generator(self) -> ImageGenerator:
        if self._use_mocks():
            LOGGER.warning("Using mock image generator", extra={"reason": "mock_services"})
            return MockImageGenerator()
        return GeminiImageGenerator(
            model=self.config.image_model,
            api_key=self.config.api_key,
            timeout_seconds=max(self.config.request_timeout, 60.0),
        )

    def _build_suggester(self) -> OutfitSuggester:
        if self._use_mocks():
            return MockOutfitSuggester()
        return GeminiOutfitSuggester(
            model=self.config.text_model,
            api_key=self.config.api_key,
            timeout_seconds=self.config.request_timeout,
        )

    def start_session(self, user_id: str) -> TryOnSession:
        """Create a session with the user's current balance and saved looks."""

        with operation_context("app:start_session") as correlation_id:
            ledger = CreditLedger(user_id=user_id, store=self.credits_store)
            session = TryOnSession(
                user_id=user_id,
                ledger=ledger,
                saved_models=self.looks_store.list_models(user_id),
                saved_outfits=self.looks_store.list_outfits(user_id),
            )
            self.sessions.add(session)
            log_event(
                LOGGER,
                logging.INFO,
                "session_started",
                session_id=session.session_id,
                user_id=user_id,
                credits=ledger.balance,
                correlation_id=correlation_id,
            )
            return session

    def get_session(self, session_id: str) -> Optional[TryOnSession]:
        return self.sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        return self.sessions.remove(session_id)

    def refresh_credits(self, session: TryOnSession) -> int:
        """Re-read the server balance, e.g. after returning from checkout."""

        return session.ledger.refresh()

    def handle_checkout_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        with operation_context("app:handle_checkout_event"):
            return handle_checkout_event(payload, self.credits_store)


__all__ = ["VirtualTryOnApp"]
