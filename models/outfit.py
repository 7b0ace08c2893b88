"""Outfit layer schema shared by the history controller and saved looks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.wardrobe_item import WardrobeItem, from_raw_metadata


@dataclass
class OutfitLayer:
    """One accumulated state of the model image.

    ``pose_images`` maps a pose instruction to the rendered image URL. Plain
    dicts keep insertion order, which the display fallback relies on.
    """

    garment: Optional[WardrobeItem] = None
    pose_images: Dict[str, str] = field(default_factory=dict)

    @property
    def is_base(self) -> bool:
        return self.garment is None

    def copy(self) -> "OutfitLayer":
        """Detached copy; the garment is frozen so only the pose map is duplicated."""

        return OutfitLayer(garment=self.garment, pose_images=dict(self.pose_images))

    def first_image(self) -> Optional[str]:
        return next(iter(self.pose_images.values()), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "garment": self.garment.to_dict() if self.garment else None,
            "pose_images": dict(self.pose_images),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "OutfitLayer":
        garment_payload = payload.get("garment")
        pose_images = payload.get("pose_images") or {}
        return cls(
            garment=from_raw_metadata(garment_payload) if garment_payload else None,
            pose_images={str(key): str(value) for key, value in pose_images.items()},
        )


__all__ = ["OutfitLayer"]
