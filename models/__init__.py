"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.image import ImageData
from models.outfit import OutfitLayer
from models.saved_looks import SavedModel, SavedOutfit
from models.wardrobe_item import WardrobeItem, from_raw_metadata

__all__ = [
    "ImageData",
    "OutfitLayer",
    "SavedModel",
    "SavedOutfit",
    "WardrobeItem",
    "from_raw_metadata",
]
