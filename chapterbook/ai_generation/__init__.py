"""
AI image generation package for ChapterBook.
"""

from .prompting import IllustrationPrompt, build_illustration_prompt
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "IllustrationPrompt",
    "ReplicateImageGenerator",
    "build_illustration_prompt",
    "normalize_image_outputs",
]
