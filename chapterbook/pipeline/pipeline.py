"""
Orchestrates outline acquisition and the sequential per-chapter generation loop.
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Any, Callable

from chapterbook.common import FailureKind, GenerationFailure, GenerationResult, OutlineGenerationError
from chapterbook.story_generation import BookRequest, OutlineEntry

from .client import TEXT_STAGE, GenerationClient
from .models import Book, GenerationStatus

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

# Average words on one printed A4 page in the default typeface.
WORDS_PER_PAGE = 574

OUTLINE_ERROR_MESSAGE = "Failed to generate a valid book outline. Please try adjusting your prompt."


def words_per_chapter(total_pages: int, chapter_count: int, words_per_page: int = WORDS_PER_PAGE) -> int:
    """
    Target length of each chapter so the whole book lands near ``total_pages``.

    Falls back to one page per chapter when either count is not positive.
    """
    if total_pages > 0 and chapter_count > 0:
        pages_per_chapter = total_pages / chapter_count
    else:
        pages_per_chapter = 1
    # Half-up rounding; round() would send 0.5 to the nearest even number.
    return int(math.floor(pages_per_chapter * words_per_page + 0.5))


class BookGenerationController:
    """
    Drives one book from request to fully generated chapters.

    The controller owns the :class:`Book` while a run is in progress. Observers
    either register ``progress_callback`` (called after every status change) or
    poll :meth:`snapshot`.
    """

    def __init__(
        self,
        client: GenerationClient,
        *,
        words_per_page: int = WORDS_PER_PAGE,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._client = client
        self._words_per_page = words_per_page
        self._progress_callback = progress_callback
        self._book: Book | None = None
        self._failures: dict[int, GenerationFailure] = {}

    @property
    def failures(self) -> dict[int, GenerationFailure]:
        """Text and image failures of the current run, keyed by chapter index."""
        return dict(self._failures)

    def snapshot(self) -> Book | None:
        """Independent copy of the book as it currently stands, or ``None`` before an outline exists."""
        return copy.deepcopy(self._book)

    def reset(self) -> None:
        self._book = None
        self._failures = {}

    def run(self, request: BookRequest) -> Book:
        """
        Generate the outline and then every chapter, one after another.

        Raises :class:`OutlineGenerationError` when no usable outline comes back.
        Chapter-level failures are recorded on the chapters instead of raised.
        """
        self.reset()

        outline = self._acquire_outline(request)
        self._book = Book.from_outline(request.title, outline)
        target_words = words_per_chapter(request.total_pages, request.chapter_count, self._words_per_page)
        self._notify(
            "outline:ready",
            title=request.title,
            total_chapters=len(outline),
            target_word_count=target_words,
            chapter_titles=[entry.chapter_title for entry in outline],
        )

        for index in range(len(outline)):
            self._generate_chapter(request, outline, index, target_words)

        completed = sum(1 for _ in self._book.completed_chapters())
        logger.info(
            "Generated %d of %d chapters for %r.", completed, len(self._book.chapters), request.title
        )
        self._notify(
            "book:complete",
            title=request.title,
            completed_chapters=completed,
            failed_chapters=len(self._book.chapters) - completed,
        )
        return self._book

    def _acquire_outline(self, request: BookRequest) -> list[OutlineEntry]:
        self._notify("outline:generating", title=request.title, chapter_count=request.chapter_count)
        result = self._client.synthesize_outline(
            request.title,
            request.genre,
            request.chapter_count,
            request.art_style,
            request.language,
        )

        if not result.ok:
            logger.error("Outline generation failed: %s", result.failure.describe())
            raise OutlineGenerationError(OUTLINE_ERROR_MESSAGE, failure=result.failure)

        outline = list(result.value)
        if len(outline) != request.chapter_count:
            logger.error(
                "Outline has %d chapters but %d were requested.", len(outline), request.chapter_count
            )
            raise OutlineGenerationError(OUTLINE_ERROR_MESSAGE)
        return outline

    def _generate_chapter(
        self,
        request: BookRequest,
        outline: list[OutlineEntry],
        index: int,
        target_words: int,
    ) -> None:
        chapter = self._book.chapters[index]

        self._transition(index, GenerationStatus.GENERATING_TEXT)
        text_result = self._client.synthesize_chapter_text(
            request.title,
            chapter.title,
            outline,
            index,
            target_words,
            request.language,
        )
        if text_result.ok and not (text_result.value or "").strip():
            text_result = GenerationResult.fail(
                TEXT_STAGE, FailureKind.EMPTY_RESPONSE, "Chapter text came back blank."
            )
        if not text_result.ok:
            self._failures[index] = text_result.failure
            logger.warning("Chapter %d marked as failed: %s", index + 1, text_result.failure.describe())
            self._transition(index, GenerationStatus.ERROR, failure=text_result.failure)
            return

        self._transition(index, GenerationStatus.GENERATING_IMAGE, content=text_result.value)

        image_result = self._client.synthesize_chapter_image(chapter.image_prompt)
        image_url = image_result.value if image_result.ok else ""
        if not image_result.ok:
            self._failures[index] = image_result.failure
            logger.warning(
                "Chapter %d will have no illustration: %s", index + 1, image_result.failure.describe()
            )
        self._transition(
            index,
            GenerationStatus.COMPLETE,
            image_url=image_url,
            failure=image_result.failure,
        )

    def _transition(
        self,
        index: int,
        status: GenerationStatus,
        *,
        content: str | None = None,
        image_url: str | None = None,
        failure: GenerationFailure | None = None,
    ) -> None:
        chapter = self._book.chapters[index]
        chapter.advance(status, content=content, image_url=image_url)
        payload: dict[str, Any] = {
            "index": index,
            "number": index + 1,
            "total_chapters": len(self._book.chapters),
            "title": chapter.title,
            "status": status,
        }
        if failure is not None:
            payload["failure"] = failure
        self._notify("chapter:status", **payload)

    def _notify(self, stage: str, **payload: Any) -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, payload)
