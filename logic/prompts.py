"""Instruction texts sent to the image and stylist models."""

from __future__ import annotations

import json
from typing import Dict, List, Sequence

from models.taxonomy import ADDITIVE_CATEGORIES
from models.wardrobe_item import WardrobeItem

GUARDRAIL_BULLETS: List[str] = [
    "Preserve the person's identity, face, hair and body shape.",
    "Keep the result photorealistic and high resolution.",
    "Return ONLY the final image. Do not include any text or commentary.",
]

MODEL_PROMPT = (
    "You are an expert AI fashion model generator. Your task is to transform the provided "
    "user image into a high-quality, realistic, full-body fashion model photo. "
    "**Crucial Rules:** 1. The output MUST be a full-body shot of the person. 2. The person "
    "should have a neutral, professional model-like expression and pose. 3. The background "
    "MUST be a clean, solid, light gray (#f0f0f0) studio backdrop. 4. The person's original "
    "clothing should be replaced with a simple, form-fitting, plain white t-shirt and simple "
    "blue jeans. 5. Retain the person's physical characteristics (face, hair, body shape) as "
    "accurately as possible. 6. The final image should be photorealistic and high-resolution. "
    "Return ONLY the final image."
)


def _rules(lines: Sequence[str]) -> str:
    return "\n".join(f"{index}.  {line}" for index, line in enumerate(lines, start=1))


def model_prompt() -> str:
    return MODEL_PROMPT


def try_on_prompt(garment: WardrobeItem) -> str:
    """Replacement wording for clothing, additive wording for accessories."""

    if garment.category in ADDITIVE_CATEGORIES:
        rules = [
            f"**ADD the Accessory:** The item is a {garment.name}. Realistically place it on "
            "the person so it integrates naturally with their existing outfit and pose.",
            "**Do NOT Replace Clothing:** The person's existing clothing MUST remain unchanged.",
            "**Preserve the Model & Background:** The person's face, hair, body shape, pose, "
            "and the background from the 'model image' MUST be perfectly preserved.",
            "**Output:** Return ONLY the final, edited image. Do not include any text.",
        ]
        return (
            "You are an expert virtual try-on AI for accessories. You will be given a "
            "'model image' and an 'accessory image'. Create a new photorealistic image where "
            "the person from the 'model image' is now wearing the item from the "
            "'accessory image'.\n\n**Crucial Rules:**\n" + _rules(rules)
        )

    rules = [
        f"**Complete Garment Replacement:** The garment is a {garment.name} ({garment.category}). "
        "REMOVE and REPLACE the matching clothing worn by the person in the 'model image'; no "
        "part of the original item should remain visible.",
        "**Preserve the Model:** The person's face, hair, body shape, and pose MUST remain unchanged.",
        "**Preserve the Background:** The entire background MUST be preserved perfectly.",
        "**Apply the Garment:** Fit the new garment naturally with realistic folds, shadows, "
        "and lighting consistent with the original scene.",
        "**Output:** Return ONLY the final, edited image. Do not include any text.",
    ]
    return (
        "You are an expert virtual try-on AI. You will be given a 'model image' and a "
        "'garment image'. Create a new photorealistic image where the person from the "
        "'model image' is wearing the clothing from the 'garment image'.\n\n"
        "**Crucial Rules:**\n" + _rules(rules)
    )


def pose_prompt(pose_instruction: str) -> str:
    return (
        "You are an expert AI fashion photographer. Your task is to recreate the image of the "
        "person with their current outfit, but in a new pose. **Crucial Rules:** 1. The new "
        f"pose is: \"{pose_instruction}\". 2. The person's appearance, clothing, and the "
        "background MUST remain identical. 3. The new pose should look natural and "
        "photorealistic. 4. The lighting and shadows must be adjusted realistically for the "
        "new pose. Return ONLY the final image."
    )


def edit_prompt(instruction: str) -> str:
    """Wrap a free-form edit instruction with the shared guardrails."""

    guardrails = "\n".join(f"- {bullet}" for bullet in GUARDRAIL_BULLETS)
    return (
        "You are an expert photo editing AI. Edit the image based on the instruction while "
        "maintaining photorealism and the core identity of the subject.\n"
        f"Instruction: \"{instruction}\".\n"
        "Apply the change accurately and preserve all other aspects of the image (pose, main "
        "outfit unless specified).\n"
        f"{guardrails}"
    )


def stylist_prompt(items: Sequence[Dict[str, str]], theme: str) -> str:
    """Ask the stylist model for a JSON object ``{"outfitIds": [...]}``."""

    return (
        "You are a fashion stylist AI. Your goal is to create a coherent and stylish outfit "
        "from a list of available wardrobe items based on a specific theme.\n\n"
        f"**Theme:** \"{theme}\"\n\n"
        "**Available Wardrobe Items:**\n"
        f"{json.dumps(list(items), indent=2)}\n\n"
        "**Instructions:**\n"
        "1. Choose one 'clothing' item and up to two 'accessory' items that complement it.\n"
        "2. Do not include items that would clash.\n"
        "3. If no items fit the theme, return an empty array.\n"
        "4. Return ONLY a JSON object with a single key \"outfitIds\" holding the chosen ids, "
        "for example {\"outfitIds\": [\"item-id-1\", \"item-id-2\"]}."
    )


__all__ = [
    "GUARDRAIL_BULLETS",
    "edit_prompt",
    "model_prompt",
    "pose_prompt",
    "stylist_prompt",
    "try_on_prompt",
]
