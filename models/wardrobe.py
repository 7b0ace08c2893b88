"""Default wardrobe shipped with every new session."""

from typing import List

from models.wardrobe_item import WardrobeItem

_IMAGE_HOST = "https://raw.githubusercontent.com"

DEFAULT_WARDROBE: List[WardrobeItem] = [
    WardrobeItem(
        id="gemini-sweat",
        name="Gemini Sweat",
        url=f"{_IMAGE_HOST}/ammaarreshi/app-images/refs/heads/main/gemini-sweat-2.png",
        category="clothing",
    ),
    WardrobeItem(
        id="gemini-tee",
        name="Gemini Tee",
        url=f"{_IMAGE_HOST}/ammaarreshi/app-images/refs/heads/main/Gemini-tee.png",
        category="clothing",
    ),
    WardrobeItem(
        id="aviator-sunglasses",
        name="Aviators",
        url=f"{_IMAGE_HOST}/google-gemini-api/app-images/main/try-on/accessories/aviator-sunglasses.png",
        category="accessory",
    ),
    WardrobeItem(
        id="beanie-hat",
        name="Beanie Hat",
        url=f"{_IMAGE_HOST}/google-gemini-api/app-images/main/try-on/accessories/beanie-hat.png",
        category="accessory",
    ),
    WardrobeItem(
        id="gold-necklace",
        name="Gold Necklace",
        url=f"{_IMAGE_HOST}/google-gemini-api/app-images/main/try-on/accessories/gold-necklace.png",
        category="accessory",
    ),
]


def default_wardrobe() -> List[WardrobeItem]:
    """Return a fresh copy of the default wardrobe list."""

    return list(DEFAULT_WARDROBE)
