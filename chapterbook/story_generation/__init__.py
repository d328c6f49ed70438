"""
Outline and chapter text generation for ChapterBook.
"""

from .chapter_writer import ChapterTextGenerator
from .outline_service import BookOutlineGenerator, OutlineEntry, parse_outline_json
from .prompting import StoryPrompt, build_chapter_prompt, build_outline_prompt
from .request import LANGUAGES, MIN_CHAPTERS, ArtStyle, BookRequest, load_request_file

__all__ = [
    "ArtStyle",
    "BookOutlineGenerator",
    "BookRequest",
    "ChapterTextGenerator",
    "LANGUAGES",
    "MIN_CHAPTERS",
    "OutlineEntry",
    "StoryPrompt",
    "build_chapter_prompt",
    "build_outline_prompt",
    "load_request_file",
    "parse_outline_json",
]
