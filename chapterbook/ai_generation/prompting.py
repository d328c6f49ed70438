"""
Prompt helpers for chapter illustrations.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_NEGATIVE_PROMPT = (
    "text, letters, captions, watermark, signature, logo, frame, border, "
    "blurry, low resolution, jpeg artifacts, deformed hands, extra limbs, duplicated faces"
)

COMPOSITION_GUIDANCE = (
    "Single cohesive book illustration, clear focal point, balanced composition, "
    "no written words anywhere in the image."
)


@dataclass(frozen=True)
class IllustrationPrompt:
    """
    Positive/negative prompt pair sent to the image model.
    """

    positive: str
    negative: str


def build_illustration_prompt(
    image_prompt: str,
    *,
    negative_prompt: str = DEFAULT_NEGATIVE_PROMPT,
) -> IllustrationPrompt:
    """
    Wrap the outline's image prompt with composition guardrails.

    The art style is already woven into ``image_prompt`` when the outline is planned.
    """
    scene = " ".join(image_prompt.split())
    if not scene:
        raise ValueError("Image prompt must be a non-empty string.")

    positive = f"{scene}\n\n{COMPOSITION_GUIDANCE}"
    return IllustrationPrompt(positive=positive, negative=negative_prompt)
