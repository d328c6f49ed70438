"""
Pagination and PDF export for generated books.
"""

from .builder import PAGE_SIZES, BookPDFBuilder, sanitize_filename
from .images import ImageLoader, LoadedImage
from .layout import (
    BookLayoutEngine,
    DocumentLayout,
    ImageBlock,
    ImageSize,
    LayoutConfig,
    LayoutPage,
    TextRun,
)

__all__ = [
    "BookLayoutEngine",
    "BookPDFBuilder",
    "DocumentLayout",
    "ImageBlock",
    "ImageLoader",
    "ImageSize",
    "LayoutConfig",
    "LayoutPage",
    "LoadedImage",
    "PAGE_SIZES",
    "TextRun",
    "sanitize_filename",
]
