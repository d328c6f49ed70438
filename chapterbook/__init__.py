"""
ChapterBook package exposing book generation, pipeline, and PDF tooling.
"""

from .pdf_generation import BookPDFBuilder, sanitize_filename
from .pipeline import (
    Book,
    BookGenerationClient,
    BookGenerationController,
    Chapter,
    GenerationStatus,
    words_per_chapter,
)
from .story_generation import ArtStyle, BookRequest

__all__ = [
    "ArtStyle",
    "Book",
    "BookGenerationClient",
    "BookGenerationController",
    "BookPDFBuilder",
    "BookRequest",
    "Chapter",
    "GenerationStatus",
    "sanitize_filename",
    "words_per_chapter",
]
