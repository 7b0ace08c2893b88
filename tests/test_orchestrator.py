"""Behavioural tests for the generation orchestrator using offline fakes."""

from pathlib import Path
import sys
from typing import Sequence

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from agents.orchestrator import BUSY_MESSAGE, EMPTY_MIXTAPE_MESSAGE, GenerationOrchestrator
from logic.errors import GenerationError, StoreError
from memory.credit_ledger import CREDIT_SYNC_FAILED_MESSAGE, CreditLedger
from memory.session_state import TryOnSession
from models.image import ImageData
from models.taxonomy import POSE_INSTRUCTIONS
from models.wardrobe_item import WardrobeItem
from tools.credits_store import SQLiteCreditsStore
from tools.image_generator import ImageGenerator, MockImageGenerator
from tools.looks_store import SQLiteLooksStore
from tools.outfit_suggester import MockOutfitSuggester

UPLOAD = ImageData("image/png", b"user-photo").to_data_url()
TEE = WardrobeItem(id="tee", name="Tee", url=ImageData("image/png", b"tee").to_data_url())
SHADES = WardrobeItem(
    id="shades", name="Shades", url=ImageData("image/png", b"shades").to_data_url(), category="accessory"
)
HAT = WardrobeItem(id="hat", name="Hat", url=ImageData("image/png", b"hat").to_data_url(), category="accessory")


class FailingGenerator(ImageGenerator):
    def __init__(self, kind: str = "blocked") -> None:
        self.kind = kind
        self.calls = 0

    def generate(self, images: Sequence[ImageData], instruction: str) -> ImageData:
        self.calls += 1
        raise GenerationError(self.kind, "Request was blocked. Reason: SAFETY.")


class FailAfterGenerator(MockImageGenerator):
    """Succeeds ``successes`` times, then fails every call."""

    def __init__(self, successes: int) -> None:
        super().__init__()
        self.successes = successes

    def generate(self, images: Sequence[ImageData], instruction: str) -> ImageData:
        if len(self.calls) >= self.successes:
            self.calls.append({"images": list(images), "instruction": instruction})
            raise GenerationError("no_image", "The AI model did not return an image.")
        return super().generate(images, instruction)


class BrokenSpendStore(SQLiteCreditsStore):
    def decrement_credits(self, user_id: str) -> int:
        raise StoreError("credits table is read-only")


def _make(tmp_path, generator=None, suggester=None, credits=10, credits_store_cls=SQLiteCreditsStore):
    credits_store = credits_store_cls(tmp_path / "tryon.db", starting_credits=credits)
    looks_store = SQLiteLooksStore(tmp_path / "tryon.db")
    orchestrator = GenerationOrchestrator(
        generator=generator or MockImageGenerator(),
        suggester=suggester or MockOutfitSuggester(),
        looks_store=looks_store,
    )
    session = TryOnSession(user_id="user-1", ledger=CreditLedger("user-1", credits_store))
    session.wardrobe = [TEE, SHADES, HAT]
    return orchestrator, session, credits_store


def _with_model(tmp_path, **kwargs):
    orchestrator, session, store = _make(tmp_path, **kwargs)
    result = orchestrator.finalize_model(session, UPLOAD)
    assert result["status"] == "ok"
    return orchestrator, session, store


def test_finalize_model_seeds_history_and_charges(tmp_path) -> None:
    orchestrator, session, store = _make(tmp_path)

    result = orchestrator.finalize_model(session, UPLOAD)

    assert result["status"] == "ok"
    assert len(session.history) == 1
    assert session.history.current_index == 0
    assert session.pose_index == 0
    assert result["state"]["display_image_url"] == session.base_model_url
    assert session.ledger.balance == 9
    assert store.get_credits("user-1") == 9


def test_invalid_upload_is_rejected_before_credit_check(tmp_path) -> None:
    orchestrator, session, _ = _make(tmp_path, credits=0)

    result = orchestrator.finalize_model(session, "data:text/plain;base64,aGVsbG8=")

    assert result["status"] == "error"
    assert "Unsupported image type" in result["message"]
    assert orchestrator.generator.calls == []
    assert session.history.is_empty()


def test_insufficient_credits_block_before_remote_call(tmp_path) -> None:
    orchestrator, session, _ = _make(tmp_path, credits=0)

    result = orchestrator.finalize_model(session, UPLOAD)

    assert result["status"] == "error"
    assert result["message"] == "You need credits to generate a model."
    assert orchestrator.generator.calls == []
    assert result["notices"] == [{"level": "error", "message": "You need credits to generate a model."}]


def test_apply_garment_then_redo_is_a_cache_hit(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)

    orchestrator.apply_garment(session, TEE)
    orchestrator.apply_garment(session, SHADES)
    cached = session.history.current_layer.pose_images[POSE_INSTRUCTIONS[0]]
    assert len(orchestrator.generator.calls) == 3
    assert session.ledger.balance == 7

    assert orchestrator.remove_last_garment(session)["status"] == "ok"
    result = orchestrator.apply_wardrobe_item(session, "shades")

    assert result["status"] == "ok"
    assert len(orchestrator.generator.calls) == 3
    assert session.ledger.balance == 7
    assert session.history.current_index == 2
    assert session.display_image_url == cached
    assert result["state"]["active_garment_ids"] == ["tee", "shades"]


def test_new_garment_after_revert_truncates(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)
    orchestrator.apply_garment(session, SHADES)

    assert orchestrator.revert_to(session, 0)["status"] == "ok"
    orchestrator.apply_garment(session, HAT)

    assert len(session.history) == 2
    assert session.active_garment_ids == ["hat"]


def test_remove_at_base_is_informational(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)

    result = orchestrator.remove_last_garment(session)

    assert result["status"] == "info"
    assert session.history.current_index == 0


def test_failed_generation_leaves_state_and_credits_untouched(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.generator = FailingGenerator()
    before = session.snapshot()

    result = orchestrator.apply_garment(session, TEE)

    assert result["status"] == "error"
    assert result["message"].startswith("Failed to apply garment. Request was blocked")
    assert session.snapshot() == before


def test_transport_failure_message_is_friendly(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.generator = FailingGenerator(kind="transport")

    result = orchestrator.apply_garment(session, TEE)

    assert result["message"] == "Failed to apply garment. The image service could not be reached, please try again."


def test_cached_pose_switch_is_free(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)

    orchestrator.select_pose(session, 2)
    calls, balance = len(orchestrator.generator.calls), session.ledger.balance
    orchestrator.select_pose(session, 0)
    result = orchestrator.select_pose(session, 2)

    assert result["status"] == "ok"
    assert len(orchestrator.generator.calls) == calls
    assert session.ledger.balance == balance
    assert result["state"]["current_pose"] == POSE_INSTRUCTIONS[2]
    assert result["state"]["available_pose_keys"] == [POSE_INSTRUCTIONS[0], POSE_INSTRUCTIONS[2]]


def test_failed_pose_generation_restores_previous_pose(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.generator = FailingGenerator()

    result = orchestrator.select_pose(session, 3)

    assert result["status"] == "error"
    assert session.pose_index == 0
    assert session.ledger.balance == 9
    assert POSE_INSTRUCTIONS[3] not in session.history.current_layer.pose_images


def test_unknown_pose_index_is_rejected(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)

    result = orchestrator.select_pose(session, len(POSE_INSTRUCTIONS))

    assert result["status"] == "error"
    assert session.pose_index == 0


def test_credit_store_failure_keeps_image_and_restores_balance(tmp_path) -> None:
    orchestrator, session, _ = _make(tmp_path, credits=1, credits_store_cls=BrokenSpendStore)
    orchestrator.finalize_model(session, UPLOAD)
    assert session.ledger.balance == 1

    result = orchestrator.select_pose(session, 1)

    assert result["status"] == "ok"
    assert {"level": "error", "message": CREDIT_SYNC_FAILED_MESSAGE} in result["notices"]
    assert session.ledger.balance == 1
    assert POSE_INSTRUCTIONS[1] in session.history.current_layer.pose_images
    assert session.pose_index == 1


def test_preset_edit_replaces_current_pose_image(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)
    before = session.display_image_url

    result = orchestrator.apply_preset_edit(session, "background", "beach")

    assert result["status"] == "ok"
    assert session.history.current_index == 1
    assert session.display_image_url != before
    assert "beach" in orchestrator.generator.calls[-1]["instruction"].lower()


def test_unknown_preset_and_blank_remix_are_rejected(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    calls = len(orchestrator.generator.calls)

    assert orchestrator.apply_preset_edit(session, "background", "moon")["status"] == "error"
    assert orchestrator.edit_image(session, "   ")["status"] == "error"
    assert len(orchestrator.generator.calls) == calls


def test_mixtape_applies_suggested_items_from_base(tmp_path) -> None:
    suggester = MockOutfitSuggester(fixed_ids=["tee", "ghost", "hat"])
    orchestrator, session, _ = _with_model(tmp_path, suggester=suggester)
    orchestrator.apply_garment(session, SHADES)

    result = orchestrator.style_mixtape(session, "Beach day")

    assert result["status"] == "ok"
    assert session.active_garment_ids == ["tee", "hat"]
    assert session.pose_index == 0
    assert suggester.calls[0]["theme"] == "Beach day"
    assert session.ledger.balance == 6


def test_empty_mixtape_changes_nothing(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path, suggester=MockOutfitSuggester(fixed_ids=[]))
    orchestrator.apply_garment(session, TEE)
    before = session.snapshot()

    result = orchestrator.style_mixtape(session, "Space opera")

    assert result["status"] == "error"
    assert result["message"] == EMPTY_MIXTAPE_MESSAGE
    assert session.snapshot() == before


def test_mixtape_failure_part_way_keeps_applied_garments(tmp_path) -> None:
    suggester = MockOutfitSuggester(fixed_ids=["tee", "shades", "hat"])
    orchestrator, session, _ = _make(tmp_path, generator=FailAfterGenerator(successes=3), suggester=suggester)
    orchestrator.finalize_model(session, UPLOAD)

    result = orchestrator.style_mixtape(session, "Night out")

    assert result["status"] == "error"
    assert session.active_garment_ids == ["tee", "shades"]
    assert session.ledger.balance == 7


def test_triggers_while_busy_are_ignored(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    calls = len(orchestrator.generator.calls)

    assert session.try_acquire()
    try:
        result = orchestrator.apply_garment(session, TEE)
    finally:
        session.release()

    assert result["status"] == "ignored"
    assert result["message"] == BUSY_MESSAGE
    assert len(orchestrator.generator.calls) == calls
    assert session.history.current_index == 0
    assert not session.busy


def test_save_outfit_keeps_redo_tail_and_loads_last_layer(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)
    orchestrator.apply_garment(session, SHADES)
    orchestrator.remove_last_garment(session)

    saved = orchestrator.save_outfit(session, "Casual")
    assert saved["status"] == "ok"
    outfit = session.saved_outfits[0]
    assert len(outfit.layers) == 3
    assert outfit.thumbnail_url == session.display_image_url
    assert session.ledger.balance == 6

    orchestrator.start_over(session)
    assert session.history.is_empty()

    result = orchestrator.load_outfit(session, outfit.id)
    assert result["status"] == "ok"
    assert session.history.current_index == 2
    assert session.active_garment_ids == ["tee", "shades"]
    assert session.base_model_url == session.history.layers[0].first_image()


def test_save_outfit_needs_a_garment(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)

    result = orchestrator.save_outfit(session, "Nothing on")

    assert result["status"] == "info"
    assert session.saved_outfits == []


def test_save_load_and_delete_model(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)

    assert orchestrator.save_model(session, "Me")["status"] == "ok"
    model = session.saved_models[0]
    assert session.history.current_index == 0

    orchestrator.start_over(session)
    assert orchestrator.load_model(session, model.id)["status"] == "ok"
    assert session.base_model_url == model.image_url

    assert orchestrator.delete_model(session, model.id)["status"] == "ok"
    assert session.saved_models == []
    assert orchestrator.refresh_library(session)["status"] == "ok"
    assert session.saved_models == []


def test_failed_delete_rolls_back_list(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)
    orchestrator.save_outfit(session, "Casual")
    outfit = session.saved_outfits[0]
    orchestrator.looks_store.delete_outfit("user-1", outfit.id)

    result = orchestrator.delete_outfit(session, outfit.id)

    assert result["status"] == "error"
    assert session.saved_outfits == [outfit]


@pytest.mark.parametrize("action", ["remove_last_garment", "start_over"])
def test_actions_without_model_do_not_crash(tmp_path, action: str) -> None:
    orchestrator, session, _ = _make(tmp_path)

    result = getattr(orchestrator, action)(session)

    assert result["status"] in {"ok", "error"}
    assert session.history.is_empty()


def test_saved_outfit_is_not_changed_by_later_edits(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path)
    orchestrator.apply_garment(session, TEE)
    orchestrator.save_outfit(session, "Casual")
    outfit = session.saved_outfits[0]
    saved_image = session.display_image_url

    orchestrator.apply_preset_edit(session, "background", "beach")
    orchestrator.select_pose(session, 1)
    assert session.history.layers[1].pose_images[POSE_INSTRUCTIONS[0]] != saved_image

    assert outfit.layers[1].pose_images == {POSE_INSTRUCTIONS[0]: saved_image}
    orchestrator.start_over(session)
    orchestrator.load_outfit(session, outfit.id)

    assert session.display_image_url == saved_image
    assert session.available_pose_keys == [POSE_INSTRUCTIONS[0]]


def test_redo_needs_a_credit_but_does_not_spend_it(tmp_path) -> None:
    orchestrator, session, _ = _with_model(tmp_path, credits=3)
    orchestrator.apply_garment(session, TEE)
    orchestrator.remove_last_garment(session)
    assert session.ledger.balance == 1

    redo = orchestrator.apply_garment(session, TEE)
    assert redo["status"] == "ok"
    assert session.ledger.balance == 1
    assert len(orchestrator.generator.calls) == 2

    orchestrator.apply_garment(session, SHADES)
    orchestrator.revert_to(session, 1)
    assert session.ledger.balance == 0

    blocked = orchestrator.apply_garment(session, SHADES)
    assert blocked["status"] == "error"
    assert blocked["message"] == "You are out of credits to add a new garment."
    assert session.history.current_index == 1
    assert len(orchestrator.generator.calls) == 3


def test_mixtape_failure_keeps_earlier_notices(tmp_path) -> None:
    suggester = MockOutfitSuggester(fixed_ids=["tee", "shades"])
    orchestrator, session, _ = _make(
        tmp_path,
        generator=FailAfterGenerator(successes=2),
        suggester=suggester,
        credits_store_cls=BrokenSpendStore,
    )
    orchestrator.finalize_model(session, UPLOAD)

    result = orchestrator.style_mixtape(session, "Night out")

    assert result["status"] == "error"
    assert session.active_garment_ids == ["tee"]
    assert result["notices"][0] == {"level": "error", "message": CREDIT_SYNC_FAILED_MESSAGE}
    assert result["notices"][-1]["message"] == result["message"]
    assert len(result["notices"]) == 2
