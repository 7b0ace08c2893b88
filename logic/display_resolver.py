"""Pure functions deciding what the canvas shows for a given history state."""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.outfit import OutfitLayer


def _layer_at(history: Sequence[OutfitLayer], current_index: int) -> Optional[OutfitLayer]:
    if 0 <= current_index < len(history):
        return history[current_index]
    return None


def resolve_display_image(
    history: Sequence[OutfitLayer],
    current_index: int,
    current_pose: str,
    base_model_url: Optional[str] = None,
) -> Optional[str]:
    """Return the image URL on screen.

    Falls back to the first inserted pose image of the current layer when the
    requested pose has not been rendered yet, and to ``base_model_url`` before
    any history exists.
    """

    layer = _layer_at(history, current_index)
    if layer is None:
        return base_model_url
    image = layer.pose_images.get(current_pose)
    if image is not None:
        return image
    return layer.first_image()


def available_pose_keys(history: Sequence[OutfitLayer], current_index: int) -> List[str]:
    """Pose instructions already rendered for the current layer."""

    layer = _layer_at(history, current_index)
    return list(layer.pose_images) if layer else []


def active_garment_ids(history: Sequence[OutfitLayer], current_index: int) -> List[str]:
    """Ids of the garments worn at ``current_index``, base layer first."""

    return [layer.garment.id for layer in history[: current_index + 1] if layer.garment]


__all__ = ["active_garment_ids", "available_pose_keys", "resolve_display_image"]
