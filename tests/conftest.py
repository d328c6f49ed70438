"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from chapterbook.common import FailureKind, GenerationResult
from chapterbook.pipeline import Book, Chapter, GenerationStatus
from chapterbook.story_generation import ArtStyle, BookRequest, OutlineEntry


class ScriptedClient:
    """
    Generation client double that replays scripted results and records calls.

    ``texts`` and ``images`` map chapter index to the value to return; ``None``
    means that stage fails for that chapter.
    """

    def __init__(self, outline=None, texts=None, images=None, outline_failure=False):
        self.outline = outline
        self.texts = texts or {}
        self.images = images or {}
        self.outline_failure = outline_failure
        self.calls = []
        self._image_calls = 0

    def synthesize_outline(self, title, genre, chapter_count, art_style, language):
        self.calls.append(("outline", title, chapter_count))
        if self.outline_failure:
            return GenerationResult.fail("outline", FailureKind.BACKEND_ERROR, "boom")
        return GenerationResult.success(list(self.outline))

    def synthesize_chapter_text(self, book_title, chapter_title, outline, chapter_index, target_word_count, language):
        self.calls.append(("text", chapter_index, target_word_count))
        text = self.texts.get(chapter_index, f"Body of chapter {chapter_index + 1}.")
        if text is None:
            return GenerationResult.fail("chapter_text", FailureKind.TIMEOUT, "took too long")
        return GenerationResult.success(text)

    def synthesize_chapter_image(self, image_prompt):
        index = [entry.image_prompt for entry in self.outline].index(image_prompt)
        self.calls.append(("image", index))
        url = self.images.get(index, f"https://images.example/{index}.jpg")
        if url is None:
            return GenerationResult.fail("chapter_image", FailureKind.EMPTY_RESPONSE, "no image")
        return GenerationResult.success(url)


def make_outline(count: int) -> list[OutlineEntry]:
    return [
        OutlineEntry(chapter_title=f"Chapter Title {i + 1}", image_prompt=f"prompt {i + 1}")
        for i in range(count)
    ]


def split_lines(text, font_name, font_size, max_width):
    """Wrap function that only breaks on newlines, keeping layout arithmetic exact."""
    return text.split("\n")


@pytest.fixture
def request_params():
    return BookRequest(
        title="The Last Starlight",
        genre="Space opera",
        chapter_count=3,
        total_pages=9,
        art_style=ArtStyle.WATERCOLOR,
        language="English",
    )


@pytest.fixture
def scripted_client():
    return ScriptedClient(outline=make_outline(3))


@pytest.fixture
def finished_book():
    return Book(
        title="The Last Starlight",
        chapters=[
            Chapter("Arrival", "p1", "First line.\nSecond line.", "img-1", GenerationStatus.COMPLETE),
            Chapter("Lost", "p2", "", "", GenerationStatus.ERROR),
            Chapter("Home", "p3", "Only line.", "", GenerationStatus.COMPLETE),
        ],
    )


@pytest.fixture
def png_bytes():
    def _make(width: int, height: int) -> bytes:
        buffer = BytesIO()
        Image.new("RGB", (width, height), color=(120, 80, 200)).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make
