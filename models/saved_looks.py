"""Persisted snapshots a user saves explicitly."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.outfit import OutfitLayer


@dataclass
class SavedModel:
    id: str
    user_id: str
    name: str
    image_url: str
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": self.created_at,
        }


@dataclass
class SavedOutfit:
    """A full layer history plus the thumbnail shown in the looks panel."""

    id: str
    user_id: str
    name: str
    thumbnail_url: str
    created_at: float
    layers: List[OutfitLayer] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "thumbnail_url": self.thumbnail_url,
            "created_at": self.created_at,
            "layers": [layer.to_dict() for layer in self.layers],
        }


__all__ = ["SavedModel", "SavedOutfit"]
