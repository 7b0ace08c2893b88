"""Wardrobe item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from models.taxonomy import validate_category


@dataclass(frozen=True)
class WardrobeItem:
    """A garment or accessory that can be layered onto the model."""

    id: str
    name: str
    url: str
    category: str = "clothing"

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("WardrobeItem requires an id")
        object.__setattr__(self, "category", validate_category(self.category))

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "url": self.url, "category": self.category}

    def summary(self) -> Dict[str, str]:
        """The fields shared with the outfit suggestion model."""

        return {"id": self.id, "name": self.name, "category": self.category}


def from_raw_metadata(metadata: Dict[str, Any]) -> WardrobeItem:
    """Factory to build a :class:`WardrobeItem` from a loose payload."""

    required_fields = ["id", "url"]
    missing = [field for field in required_fields if not metadata.get(field)]
    if missing:
        raise ValueError(f"Missing required fields for WardrobeItem: {missing}")

    return WardrobeItem(
        id=str(metadata["id"]),
        name=str(metadata.get("name") or metadata["id"]),
        url=str(metadata["url"]),
        category=str(metadata.get("category") or "clothing"),
    )


__all__ = ["WardrobeItem", "from_raw_metadata"]
