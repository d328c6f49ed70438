"""
End-to-end orchestration for ChapterBook text and illustration generation.
"""

from .client import BookGenerationClient, GenerationClient
from .models import Book, Chapter, GenerationStatus, OutlineEntry
from .pipeline import (
    WORDS_PER_PAGE,
    BookGenerationController,
    ProgressCallback,
    words_per_chapter,
)

__all__ = [
    "Book",
    "BookGenerationClient",
    "BookGenerationController",
    "Chapter",
    "GenerationClient",
    "GenerationStatus",
    "OutlineEntry",
    "ProgressCallback",
    "WORDS_PER_PAGE",
    "words_per_chapter",
]
