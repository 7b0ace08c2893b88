"""Canonical labels for garment categories, poses and edit presets.

Prompts for the image model are keyed off these labels, so agents, tools and
the HTTP layer all validate against the same tables.
"""

from typing import Dict, List


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_").replace("-", "_")


CATEGORIES: List[str] = [
    "clothing",
    "accessory",
    "top",
    "bottom",
    "outerwear",
    "shoes",
    "dress",
]

# Categories rendered as an addition to the outfit rather than a replacement.
ADDITIVE_CATEGORIES = {"accessory"}

POSE_INSTRUCTIONS: List[str] = [
    "Full frontal view, hands on hips",
    "Slightly turned, 3/4 view",
    "Side profile view",
    "Jumping in the air, mid-action shot",
    "Walking towards camera",
    "Leaning against a wall",
]

BACKGROUND_PRESETS: Dict[str, str] = {
    "light_gray": "Change the background to a clean, solid light gray (#f0f0f0) studio backdrop.",
    "white": "Change the background to a clean, solid white studio backdrop.",
    "beige": "Change the background to a clean, solid beige (#f5f5dc) studio backdrop.",
    "charcoal": "Change the background to a clean, solid charcoal (#36454F) studio backdrop.",
    "sky_blue": "Change the background to a clean, solid sky blue (#87CEEB) studio backdrop.",
    "sage_green": "Change the background to a clean, solid sage green (#B2AC88) studio backdrop.",
    "city": (
        "Place the person on a bustling, realistic city street at golden hour, "
        "with soft light and blurred background buildings."
    ),
    "beach": (
        "Place the person on a serene, photorealistic sandy beach with gentle waves "
        "and a clear blue sky."
    ),
    "cafe": (
        "Place the person inside a cozy, modern cafe with warm lighting and a softly "
        "blurred interior background."
    ),
    "loft": (
        "Place the person in a modern, sun-drenched studio loft with large windows "
        "and a clean, minimalist aesthetic."
    ),
    "office": (
        "Place the person in a sleek, modern office environment with a professional "
        "and blurred background."
    ),
    "gallery": (
        "Place the person in a bright, minimalist art gallery with abstract paintings "
        "softly blurred on the walls."
    ),
}

ASPECT_RATIO_PRESETS: Dict[str, str] = {
    "1:1": (
        "Regenerate the entire image to fit a 1:1 square aspect ratio. Do not crop the "
        "person; redraw the scene to fit the new dimensions naturally."
    ),
    "4:5": (
        "Regenerate the entire image to fit a 4:5 portrait aspect ratio. Do not crop the "
        "person; redraw the scene to fit the new dimensions naturally."
    ),
}


def _passport_prompt(background_color: str) -> str:
    return (
        "You are an expert AI photo generator specializing in official documents. "
        "Transform the person in this image into a standard passport-style photograph. "
        "**Crucial Rules:** 1. The photo MUST be a front-facing, head-and-shoulders shot "
        "with a neutral expression. 2. The background MUST be a solid, uniform "
        f"{background_color} color. 3. Remove any hats, non-prescription glasses, or "
        "distracting accessories. 4. The lighting must be even and professional, without "
        "shadows on the face or background. 5. The final image aspect ratio should be "
        "close to 3:4 (width:height). Return ONLY the final image."
    )


PROFESSIONAL_SHOT_PRESETS: Dict[str, str] = {
    "headshot": (
        "You are an expert AI portrait photographer. Transform the person in this image "
        "into a professional headshot suitable for a corporate profile or social media. "
        "**Crucial Rules:** 1. The photo should be a head-and-shoulders shot. 2. The "
        "person can have a slight, professional smile. 3. The background should be a "
        "clean, modern, and subtly blurred professional setting (like an office or a "
        "neutral studio backdrop). 4. The lighting should be flattering and "
        "professional. Return ONLY the final image."
    ),
    "passport_white": _passport_prompt("white"),
    "passport_red": _passport_prompt("red"),
}

EDIT_PRESETS: Dict[str, Dict[str, str]] = {
    "background": BACKGROUND_PRESETS,
    "aspect_ratio": ASPECT_RATIO_PRESETS,
    "professional": PROFESSIONAL_SHOT_PRESETS,
}


def validate_category(category: str) -> str:
    """Return the canonical category key or raise ``ValueError``."""

    key = _normalize_key(category)
    if key not in CATEGORIES:
        raise ValueError(f"Unknown garment category: {category}")
    return key


def pose_instruction(index: int) -> str:
    """Return the pose instruction at ``index`` or raise ``ValueError``."""

    if not 0 <= index < len(POSE_INSTRUCTIONS):
        raise ValueError(f"Pose index out of range: {index}")
    return POSE_INSTRUCTIONS[index]


def edit_instruction(kind: str, option: str) -> str:
    """Look up the edit instruction for a preset kind/option pair."""

    presets = EDIT_PRESETS.get(_normalize_key(kind))
    if presets is None:
        raise ValueError(f"Unknown edit kind: {kind}")
    option_key = option if option in presets else _normalize_key(option)
    if option_key not in presets:
        raise ValueError(f"Unknown {kind} option: {option}")
    return presets[option_key]


__all__ = [
    "ADDITIVE_CATEGORIES",
    "ASPECT_RATIO_PRESETS",
    "BACKGROUND_PRESETS",
    "CATEGORIES",
    "EDIT_PRESETS",
    "POSE_INSTRUCTIONS",
    "PROFESSIONAL_SHOT_PRESETS",
    "edit_instruction",
    "pose_instruction",
    "validate_category",
]
