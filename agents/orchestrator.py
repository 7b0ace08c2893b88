"""Credit-gated, single-flight orchestration of every try-on action.

Each public action claims the session's in-flight slot, runs, and converts
any :class:`TryOnError` into an ``error`` payload with a user-facing notice.
Triggers that arrive while another action is running are dropped.
"""

from dataclasses import dataclass, field
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from logic.errors import (
    InvalidInputError,
    StoreError,
    SuggestionUnavailableError,
    TryOnError,
    friendly_error_message,
)
from logic.optimistic import optimistic_update
from logic.outfit_history import OutfitHistory
from logic.prompts import edit_prompt, model_prompt, pose_prompt, try_on_prompt
from memory.session_state import Notice, TryOnSession
from models.image import ImageData
from models.taxonomy import POSE_INSTRUCTIONS, edit_instruction
from models.wardrobe_item import WardrobeItem
from tools.image_generator import ImageGenerator
from tools.image_loader import load_image, parse_image_data_url
from tools.looks_store import LooksStore
from tools.outfit_suggester import OutfitSuggester
from tryon_app.logging_config import get_logger, log_event, operation_context


LOGGER = get_logger(__name__)

BUSY_MESSAGE = "Please wait for the current generation to finish."
EMPTY_MIXTAPE_MESSAGE = "The AI couldn't build an outfit for that theme. Try another!"


@dataclass
class ActionOutcome:
    status: str = "ok"
    message: Optional[str] = None
    notices: List[Notice] = field(default_factory=list)


class GenerationOrchestrator:
    """Applies user actions to a :class:`TryOnSession`.

    History transitions only run after the remote generator returned an
    image, so a failed action leaves the session exactly as it was.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        suggester: OutfitSuggester,
        looks_store: LooksStore,
        image_loader: Callable[[str], ImageData] | None = None,
        fetch_timeout: float = 10.0,
    ) -> None:
        self.generator = generator
        self.suggester = suggester
        self.looks_store = looks_store
        self.image_loader = image_loader or partial(load_image, timeout=fetch_timeout)

    # ------------------------------------------------------------------ plumbing

    def _result(self, session: TryOnSession, outcome: ActionOutcome) -> Dict[str, Any]:
        return {
            "status": outcome.status,
            "message": outcome.message,
            "notices": [notice.to_dict() for notice in outcome.notices],
            "state": session.snapshot(),
        }

    def _run(
        self,
        session: TryOnSession,
        action: str,
        failure_context: str,
        body: Callable[[], ActionOutcome],
        carried: Optional[List[Notice]] = None,
    ) -> Dict[str, Any]:
        """Run ``body`` under the busy lock.

        ``carried`` holds notices a failing body already produced; they are kept
        ahead of the failure notice.
        """

        if not session.try_acquire():
            log_event(LOGGER, logging.INFO, "action_ignored_busy", action=action, session_id=session.session_id)
            return self._result(session, ActionOutcome(status="ignored", message=BUSY_MESSAGE))

        try:
            with operation_context(f"action:{action}") as correlation_id:
                log_event(
                    LOGGER,
                    logging.INFO,
                    "action_started",
                    action=action,
                    session_id=session.session_id,
                    correlation_id=correlation_id,
                )
                try:
                    outcome = body()
                except TryOnError as exc:
                    message = friendly_error_message(exc, failure_context)
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "action_failed",
                        action=action,
                        session_id=session.session_id,
                        error_type=type(exc).__name__,
                        error_kind=getattr(exc, "kind", None),
                        correlation_id=correlation_id,
                    )
                    outcome = ActionOutcome(
                        status="error", message=message, notices=[*(carried or []), Notice(message)]
                    )
                except Exception:
                    message = f"{failure_context}. Something went wrong, please try again."
                    log_event(
                        LOGGER,
                        logging.ERROR,
                        "action_crashed",
                        action=action,
                        session_id=session.session_id,
                        correlation_id=correlation_id,
                        exc_info=True,
                    )
                    outcome = ActionOutcome(
                        status="error", message=message, notices=[*(carried or []), Notice(message)]
                    )

                log_event(
                    LOGGER,
                    logging.INFO,
                    "action_completed",
                    action=action,
                    session_id=session.session_id,
                    status=outcome.status,
                    credits=session.ledger.balance,
                    correlation_id=correlation_id,
                )
        finally:
            session.release()
        return self._result(session, outcome)

    def _charge(self, session: TryOnSession, notices: List[Notice]) -> None:
        failure = session.ledger.use_credit()
        if failure:
            notices.append(Notice(failure))

    def _generate_url(self, images: List[ImageData], instruction: str) -> str:
        return self.generator.generate(images, instruction).to_data_url()

    @staticmethod
    def _start_history(session: TryOnSession, image_url: str) -> None:
        session.base_model_url = image_url
        session.history = OutfitHistory.start(image_url, POSE_INSTRUCTIONS[0])
        session.pose_index = 0

    @staticmethod
    def _require_model(session: TryOnSession) -> None:
        if session.history.is_empty():
            raise InvalidInputError("Create or load a model first.")

    # ------------------------------------------------------------------ model

    def finalize_model(self, session: TryOnSession, image_data_url: str) -> Dict[str, Any]:
        """Turn an uploaded photo into the base model and seed a fresh history."""

        def body() -> ActionOutcome:
            image = parse_image_data_url(image_data_url)
            session.ledger.require_credit("You need credits to generate a model.")
            model_url = self._generate_url([image], model_prompt())
            notices: List[Notice] = []
            self._start_history(session, model_url)
            self._charge(session, notices)
            return ActionOutcome(notices=notices)

        return self._run(session, "finalize_model", "Failed to create your model", body)

    def start_over(self, session: TryOnSession) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            session.reset()
            return ActionOutcome()

        return self._run(session, "start_over", "Failed to start over", body)

    # ------------------------------------------------------------------ garments

    def _apply_garment(self, session: TryOnSession, garment: WardrobeItem) -> List[Notice]:
        self._require_model(session)
        session.ledger.require_credit("You are out of credits to add a new garment.")
        notices: List[Notice] = []
        if session.history.next_layer_matches(garment.id):
            session.history.advance()
            session.pose_index = 0
            return notices

        base_url = session.display_image_url
        if base_url is None:
            raise InvalidInputError("Create or load a model first.")
        base_image = self.image_loader(base_url)
        garment_image = self.image_loader(garment.url)

        image_url = self._generate_url([base_image, garment_image], try_on_prompt(garment))
        session.history.apply_garment(garment, image_url, session.current_pose)
        session.remember_garment(garment)
        self._charge(session, notices)
        return notices

    def apply_garment(self, session: TryOnSession, garment: WardrobeItem) -> Dict[str, Any]:
        """Layer ``garment`` on top of the outfit currently on screen."""

        def body() -> ActionOutcome:
            return ActionOutcome(notices=self._apply_garment(session, garment))

        return self._run(session, "apply_garment", "Failed to apply garment", body)

    def apply_wardrobe_item(self, session: TryOnSession, item_id: str) -> Dict[str, Any]:
        garment = session.find_wardrobe_item(item_id)
        if garment is None:
            outcome = ActionOutcome(status="error", message=f"Unknown wardrobe item: {item_id}")
            return self._result(session, outcome)
        return self.apply_garment(session, garment)

    def remove_last_garment(self, session: TryOnSession) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            self._require_model(session)
            if session.history.current_index == 0:
                return ActionOutcome(status="info", message="There is no garment to remove.")
            session.history.remove_last()
            session.pose_index = 0
            return ActionOutcome()

        return self._run(session, "remove_last_garment", "Failed to remove garment", body)

    def revert_to(self, session: TryOnSession, index: int) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            self._require_model(session)
            session.history.revert_to(index)
            session.pose_index = 0
            return ActionOutcome()

        return self._run(session, "revert_to", "Failed to revert outfit", body)

    def delete_wardrobe_item(self, session: TryOnSession, item_id: str) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            before = len(session.wardrobe)
            session.wardrobe = [item for item in session.wardrobe if item.id != item_id]
            if len(session.wardrobe) == before:
                raise InvalidInputError(f"Unknown wardrobe item: {item_id}")
            return ActionOutcome(notices=[Notice("Item removed from your wardrobe.", level="success")])

        return self._run(session, "delete_wardrobe_item", "Failed to remove item", body)

    # ------------------------------------------------------------------ poses

    def select_pose(self, session: TryOnSession, pose_index: int) -> Dict[str, Any]:
        """Show another pose, generating it only when the layer lacks it."""

        def body() -> ActionOutcome:
            if not 0 <= pose_index < len(POSE_INSTRUCTIONS):
                raise InvalidInputError(f"Unknown pose: {pose_index}")
            self._require_model(session)
            if pose_index == session.pose_index:
                return ActionOutcome()

            instruction = POSE_INSTRUCTIONS[pose_index]
            if instruction in session.history.current_layer.pose_images:
                session.pose_index = pose_index
                return ActionOutcome()

            base_url = session.history.base_image_for_pose_change()
            if base_url is None:
                raise InvalidInputError("The current outfit has no image to pose.")
            base_image = self.image_loader(base_url)
            session.ledger.require_credit("You are out of credits to generate a new pose.")

            previous_pose = session.pose_index
            session.pose_index = pose_index
            try:
                image_url = self._generate_url([base_image], pose_prompt(instruction))
            except Exception:
                session.pose_index = previous_pose
                raise

            notices: List[Notice] = []
            session.history.add_pose_image(instruction, image_url)
            self._charge(session, notices)
            return ActionOutcome(notices=notices)

        return self._run(session, "select_pose", "Failed to change pose", body)

    # ------------------------------------------------------------------ edits

    def _edit_current_image(self, session: TryOnSession, instruction: str) -> List[Notice]:
        self._require_model(session)
        if not instruction or not instruction.strip():
            raise InvalidInputError("Describe the change you want to make.")
        display_url = session.display_image_url
        if display_url is None:
            raise InvalidInputError("Create or load a model first.")
        base_image = self.image_loader(display_url)
        session.ledger.require_credit("You are out of credits for this action.")

        image_url = self._generate_url([base_image], edit_prompt(instruction.strip()))
        notices: List[Notice] = []
        session.history.replace_current_pose_image(session.current_pose, image_url)
        self._charge(session, notices)
        return notices

    def edit_image(self, session: TryOnSession, instruction: str) -> Dict[str, Any]:
        """Free-form edit ("remix") of the image on screen."""

        def body() -> ActionOutcome:
            return ActionOutcome(notices=self._edit_current_image(session, instruction))

        return self._run(session, "edit_image", "Failed to apply changes", body)

    def apply_preset_edit(self, session: TryOnSession, kind: str, option: str) -> Dict[str, Any]:
        """Background, aspect-ratio or professional-shot edit by preset name."""

        def body() -> ActionOutcome:
            try:
                instruction = edit_instruction(kind, option)
            except ValueError as exc:
                raise InvalidInputError(str(exc)) from exc
            return ActionOutcome(notices=self._edit_current_image(session, instruction))

        return self._run(session, f"edit_{kind}", "Failed to apply changes", body)

    # ------------------------------------------------------------------ mixtape

    def style_mixtape(self, session: TryOnSession, theme: str) -> Dict[str, Any]:
        """Ask the stylist for a themed outfit and apply it from the base layer.

        A failure part-way leaves the history at the last applied garment.
        """

        notices: List[Notice] = []

        def body() -> ActionOutcome:
            self._require_model(session)
            if not theme or not theme.strip():
                raise InvalidInputError("Pick a theme for your mixtape.")
            session.ledger.require_credit("You are out of credits for this action.")

            suggested_ids = self.suggester.suggest([item.summary() for item in session.wardrobe], theme.strip())
            garments = [item for item in map(session.find_wardrobe_item, suggested_ids) if item is not None]
            if len(garments) != len(suggested_ids):
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "mixtape_unknown_items",
                    session_id=session.session_id,
                    suggested=len(suggested_ids),
                    known=len(garments),
                )
            if not garments:
                raise SuggestionUnavailableError(EMPTY_MIXTAPE_MESSAGE)

            session.history.revert_to(0)
            session.pose_index = 0
            for garment in garments:
                notices.extend(self._apply_garment(session, garment))
            return ActionOutcome(notices=list(notices))

        return self._run(session, "style_mixtape", "Style Mixtape failed", body, carried=notices)

    # ------------------------------------------------------------------ saved looks

    def refresh_library(self, session: TryOnSession) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            session.saved_models = self.looks_store.list_models(session.user_id)
            session.saved_outfits = self.looks_store.list_outfits(session.user_id)
            return ActionOutcome()

        return self._run(session, "refresh_library", "Could not load your saved creations", body)

    def save_model(self, session: TryOnSession, name: str, image_url: str | None = None) -> Dict[str, Any]:
        """Persist a model image and make it the active model."""

        def body() -> ActionOutcome:
            target_url = image_url or session.base_model_url
            if not target_url:
                raise InvalidInputError("There is no model to save.")
            if not name or not name.strip():
                raise InvalidInputError("Give your model a name.")
            saved = self.looks_store.create_model(session.user_id, name.strip(), target_url)
            session.saved_models.insert(0, saved)
            self._start_history(session, target_url)
            return ActionOutcome(notices=[Notice("Model saved successfully!", level="success")])

        return self._run(session, "save_model", "Couldn't save your model", body)

    def load_model(self, session: TryOnSession, model_id: str) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            saved = next((model for model in session.saved_models if model.id == model_id), None)
            if saved is None:
                saved = next(
                    (model for model in self.looks_store.list_models(session.user_id) if model.id == model_id),
                    None,
                )
            if saved is None:
                raise InvalidInputError("That model no longer exists.")
            self._start_history(session, saved.image_url)
            return ActionOutcome()

        return self._run(session, "load_model", "Couldn't load the model", body)

    def delete_model(self, session: TryOnSession, model_id: str) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            def apply() -> list:
                original = list(session.saved_models)
                session.saved_models = [model for model in original if model.id != model_id]
                return original

            def commit() -> None:
                if not self.looks_store.delete_model(session.user_id, model_id):
                    raise StoreError("That model no longer exists.")

            def rollback(original: list) -> None:
                session.saved_models = original

            optimistic_update(apply, commit, rollback)
            return ActionOutcome(notices=[Notice("Model deleted.", level="success")])

        return self._run(session, "delete_model", "Couldn't delete the model", body)

    def save_outfit(self, session: TryOnSession, name: str) -> Dict[str, Any]:
        """Save the full layer history, redo tail included; costs one credit.

        The thumbnail is the image on screen. Loading the look lands on its
        last layer.
        """

        def body() -> ActionOutcome:
            display_url = session.display_image_url
            if display_url is None or len(session.history) <= 1:
                return ActionOutcome(status="info", message="Add at least one garment to save a look.")
            if not name or not name.strip():
                raise InvalidInputError("Give your look a name.")
            session.ledger.require_credit("You are out of credits to save a look.")

            saved = self.looks_store.create_outfit(
                session.user_id, name.strip(), display_url, session.history.layers
            )
            session.saved_outfits.insert(0, saved)
            notices: List[Notice] = []
            self._charge(session, notices)
            notices.append(Notice("Look saved successfully!", level="success"))
            return ActionOutcome(notices=notices)

        return self._run(session, "save_outfit", "Failed to save look", body)

    def load_outfit(self, session: TryOnSession, outfit_id: str) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            saved = next((outfit for outfit in session.saved_outfits if outfit.id == outfit_id), None)
            if saved is None:
                saved = self.looks_store.get_outfit(session.user_id, outfit_id)
            if saved is None:
                raise InvalidInputError("That look no longer exists.")
            history = OutfitHistory.from_layers(saved.layers)
            session.history = history
            session.base_model_url = history.layers[0].first_image()
            session.pose_index = 0
            return ActionOutcome(notices=[Notice(f"Loaded look: {saved.name}", level="info")])

        return self._run(session, "load_outfit", "Couldn't load the look", body)

    def delete_outfit(self, session: TryOnSession, outfit_id: str) -> Dict[str, Any]:
        def body() -> ActionOutcome:
            def apply() -> list:
                original = list(session.saved_outfits)
                session.saved_outfits = [outfit for outfit in original if outfit.id != outfit_id]
                return original

            def commit() -> None:
                if not self.looks_store.delete_outfit(session.user_id, outfit_id):
                    raise StoreError("That look no longer exists.")

            def rollback(original: list) -> None:
                session.saved_outfits = original

            optimistic_update(apply, commit, rollback)
            return ActionOutcome(notices=[Notice("Look deleted.", level="success")])

        return self._run(session, "delete_outfit", "Couldn't delete the look", body)


__all__ = ["ActionOutcome", "BUSY_MESSAGE", "EMPTY_MIXTAPE_MESSAGE", "GenerationOrchestrator"]
