"""Undo/redo stack of outfit layers with a movable current pointer.

Layers live in a flat list and ``current_index`` points at the one on screen.
Moving the pointer back keeps later layers around for redo; applying a new
garment from an earlier point truncates everything after the pointer first.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from logic.errors import InvalidInputError
from models.outfit import OutfitLayer
from models.wardrobe_item import WardrobeItem


class HistoryError(InvalidInputError):
    """Raised for transitions that are not valid in the current state."""


class OutfitHistory:
    def __init__(self) -> None:
        self._layers: List[OutfitLayer] = []
        self._current_index = 0

    @classmethod
    def start(cls, base_image_url: str, pose: str) -> "OutfitHistory":
        """Seed a history with the base model layer at index 0."""

        history = cls()
        history._layers = [OutfitLayer(garment=None, pose_images={pose: base_image_url})]
        return history

    @classmethod
    def from_layers(cls, layers: Iterable[OutfitLayer], current_index: Optional[int] = None) -> "OutfitHistory":
        """Rebuild a history, pointing at the last layer unless told otherwise."""

        history = cls()
        history._layers = [layer.copy() for layer in layers]
        if not history._layers:
            raise HistoryError("An outfit history needs at least the base layer")
        if history._layers[0].garment is not None:
            raise HistoryError("The first layer must be the base model")
        if any(not layer.pose_images for layer in history._layers):
            raise HistoryError("Every layer needs at least one pose image")
        index = len(history._layers) - 1 if current_index is None else current_index
        history._check_index(index)
        history._current_index = index
        return history

    @property
    def layers(self) -> List[OutfitLayer]:
        """Detached copies; changes go through the transition methods."""

        return [layer.copy() for layer in self._layers]

    @property
    def current_index(self) -> int:
        return self._current_index

    def __len__(self) -> int:
        return len(self._layers)

    def is_empty(self) -> bool:
        return not self._layers

    @property
    def current_layer(self) -> OutfitLayer:
        return self._live_layer().copy()

    def _live_layer(self) -> OutfitLayer:
        if not self._layers:
            raise HistoryError("No model has been finalized yet")
        return self._layers[self._current_index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._layers):
            raise HistoryError(f"Layer index {index} is outside 0..{len(self._layers) - 1}")

    def next_layer_matches(self, garment_id: str) -> bool:
        """True when the redo layer right after the pointer wears ``garment_id``.

        Only the immediate next layer is checked.
        """

        next_index = self._current_index + 1
        if next_index >= len(self._layers):
            return False
        garment = self._layers[next_index].garment
        return garment is not None and garment.id == garment_id

    def advance(self) -> OutfitLayer:
        """Move the pointer one step forward along the redo path."""

        self._check_index(self._current_index + 1)
        self._current_index += 1
        return self.current_layer

    def apply_garment(self, garment: WardrobeItem, image_url: str, pose: str) -> OutfitLayer:
        """Append a garment layer, or redo it if it is already next.

        Returns the layer now on screen.
        """

        if not self._layers:
            raise HistoryError("Cannot apply a garment before the base model exists")
        if self.next_layer_matches(garment.id):
            return self.advance()
        del self._layers[self._current_index + 1 :]
        layer = OutfitLayer(garment=garment, pose_images={pose: image_url})
        self._layers.append(layer)
        self._current_index = len(self._layers) - 1
        return layer.copy()

    def remove_last(self) -> int:
        """Step back one layer without discarding it."""

        if self._current_index <= 0:
            raise HistoryError("There is no garment to remove")
        self._current_index -= 1
        return self._current_index

    def revert_to(self, index: int) -> int:
        self._check_index(index)
        self._current_index = index
        return self._current_index

    def add_pose_image(self, pose: str, image_url: str) -> None:
        self._live_layer().pose_images[pose] = image_url

    def replace_current_pose_image(self, pose: str, image_url: str) -> None:
        """Overwrite the rendered image for ``pose`` on the current layer in place."""

        self._live_layer().pose_images[pose] = image_url

    def base_image_for_pose_change(self) -> Optional[str]:
        """First available pose image of the current layer."""

        return self.current_layer.first_image()

    def to_layers(self) -> List[Dict[str, Any]]:
        return [layer.to_dict() for layer in self._layers]


__all__ = ["HistoryError", "OutfitHistory"]
