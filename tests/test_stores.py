"""SQLite persistence for credits and saved looks."""

from pathlib import Path
import sqlite3
import sys
from types import SimpleNamespace

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

import tools.looks_store as looks_store_module
from logic.errors import StoreError
from models.outfit import OutfitLayer
from models.wardrobe_item import WardrobeItem
from tools.credits_store import SQLiteCreditsStore
from tools.looks_store import SQLiteLooksStore

POSE = "Full frontal view, hands on hips"


@pytest.fixture
def ticking_clock(monkeypatch):
    ticks = iter(float(second) for second in range(1, 100))
    monkeypatch.setattr(looks_store_module, "time", SimpleNamespace(time=lambda: next(ticks)))


def test_unknown_user_gets_starting_credits(tmp_path) -> None:
    store = SQLiteCreditsStore(tmp_path / "nested" / "credits.db", starting_credits=7)

    assert store.get_credits("new-user") == 7
    assert store.decrement_credits("new-user") == 6
    assert store.add_credits("new-user", 10) == 16
    assert store.set_credits("new-user", 3) == 3


def test_credits_store_rejects_invalid_amounts(tmp_path) -> None:
    store = SQLiteCreditsStore(tmp_path / "credits.db")

    with pytest.raises(StoreError):
        store.set_credits("user-1", -1)
    with pytest.raises(StoreError):
        store.add_credits("user-1", 0)


def test_models_are_listed_newest_first_per_user(tmp_path, ticking_clock) -> None:
    store = SQLiteLooksStore(tmp_path / "looks.db")
    first = store.create_model("user-1", "Studio", "data:image/png;base64,AA==")
    second = store.create_model("user-1", "Outdoor", "data:image/png;base64,AQ==")
    store.create_model("user-2", "Other", "data:image/png;base64,Ag==")

    assert [model.id for model in store.list_models("user-1")] == [second.id, first.id]

    assert store.delete_model("user-1", first.id)
    assert not store.delete_model("user-2", second.id)
    assert [model.name for model in store.list_models("user-1")] == ["Outdoor"]


def test_outfit_layers_survive_persistence(tmp_path, ticking_clock) -> None:
    store = SQLiteLooksStore(tmp_path / "looks.db")
    garment = WardrobeItem(id="tee", name="Tee", url="https://example.com/tee.png")
    layers = [
        OutfitLayer(garment=None, pose_images={POSE: "data:image/png;base64,AA=="}),
        OutfitLayer(garment=garment, pose_images={POSE: "data:image/png;base64,AQ==", "Side": "x"}),
    ]

    saved = store.create_outfit("user-1", "Casual", "data:image/png;base64,AQ==", layers)
    loaded = store.get_outfit("user-1", saved.id)

    assert loaded is not None
    assert loaded.layers == layers
    assert list(loaded.layers[1].pose_images) == [POSE, "Side"]
    assert store.get_outfit("user-2", saved.id) is None
    assert [outfit.id for outfit in store.list_outfits("user-1")] == [saved.id]

    assert store.delete_outfit("user-1", saved.id)
    assert store.list_outfits("user-1") == []


def test_read_failures_surface_as_store_errors(tmp_path) -> None:
    db_path = tmp_path / "looks.db"
    store = SQLiteLooksStore(db_path)
    saved = store.create_outfit(
        "user-1", "Casual", "data:image/png;base64,AA==", [OutfitLayer(pose_images={POSE: "x"})]
    )
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE saved_outfits SET outfit_data = ? WHERE id = ?", ("{not json", saved.id))
        conn.execute("DROP TABLE saved_models")

    with pytest.raises(StoreError):
        store.list_outfits("user-1")
    with pytest.raises(StoreError):
        store.get_outfit("user-1", saved.id)
    with pytest.raises(StoreError):
        store.list_models("user-1")
