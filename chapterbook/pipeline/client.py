"""
Generation client contract and its LiteLLM/Replicate-backed implementation.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from chapterbook.ai_generation import ReplicateImageGenerator
from chapterbook.common import CompletionCallable, FailureKind, GenerationResult
from chapterbook.story_generation import (
    ArtStyle,
    BookOutlineGenerator,
    ChapterTextGenerator,
    OutlineEntry,
)

logger = logging.getLogger(__name__)

OUTLINE_STAGE = "outline"
TEXT_STAGE = "chapter_text"
IMAGE_STAGE = "chapter_image"


class GenerationClient(Protocol):
    """
    The three generation capabilities the controller depends on.

    Implementations never raise; every outcome is a :class:`GenerationResult`.
    """

    def synthesize_outline(
        self,
        title: str,
        genre: str,
        chapter_count: int,
        art_style: ArtStyle,
        language: str,
    ) -> GenerationResult[list[OutlineEntry]]:
        ...

    def synthesize_chapter_text(
        self,
        book_title: str,
        chapter_title: str,
        outline: Sequence[OutlineEntry],
        chapter_index: int,
        target_word_count: int,
        language: str,
    ) -> GenerationResult[str]:
        ...

    def synthesize_chapter_image(self, image_prompt: str) -> GenerationResult[str]:
        ...


def _failure_kind(exc: BaseException) -> FailureKind:
    if isinstance(exc, TimeoutError) or "timeout" in type(exc).__name__.lower():
        return FailureKind.TIMEOUT
    if isinstance(exc, ValueError):
        return FailureKind.INVALID_RESPONSE
    return FailureKind.BACKEND_ERROR


class BookGenerationClient:
    """
    Default :class:`GenerationClient` backed by LiteLLM for text and Replicate for images.

    Backend exceptions are logged here and turned into failure results, so the
    controller decides per stage what a failure means.
    """

    def __init__(
        self,
        *,
        outline_generator: BookOutlineGenerator | None = None,
        chapter_generator: ChapterTextGenerator | None = None,
        image_generator: ReplicateImageGenerator | None = None,
        text_model: str | None = None,
        text_api_key: str | None = None,
        completion_fn: CompletionCallable | None = None,
        request_timeout: float | None = 120.0,
    ) -> None:
        self._outline_generator = outline_generator or BookOutlineGenerator(
            api_key=text_api_key,
            model=text_model,
            completion_fn=completion_fn,
            request_timeout=request_timeout,
        )
        self._chapter_generator = chapter_generator or ChapterTextGenerator(
            api_key=text_api_key,
            model=text_model,
            completion_fn=completion_fn,
            request_timeout=request_timeout,
        )
        self._image_generator = image_generator or ReplicateImageGenerator(
            request_timeout=request_timeout,
        )

    def synthesize_outline(
        self,
        title: str,
        genre: str,
        chapter_count: int,
        art_style: ArtStyle,
        language: str,
    ) -> GenerationResult[list[OutlineEntry]]:
        try:
            entries = self._outline_generator.generate_outline(
                title=title,
                genre=genre,
                chapter_count=chapter_count,
                art_style=art_style,
                language=language,
            )
        except Exception as exc:
            logger.exception("Error generating book outline for %r.", title)
            return GenerationResult.fail(OUTLINE_STAGE, _failure_kind(exc), str(exc))

        if not entries:
            return GenerationResult.fail(OUTLINE_STAGE, FailureKind.EMPTY_RESPONSE, "Outline was empty.")
        return GenerationResult.success(entries)

    def synthesize_chapter_text(
        self,
        book_title: str,
        chapter_title: str,
        outline: Sequence[OutlineEntry],
        chapter_index: int,
        target_word_count: int,
        language: str,
    ) -> GenerationResult[str]:
        try:
            text = self._chapter_generator.write_chapter(
                book_title=book_title,
                chapter_title=chapter_title,
                outline=outline,
                chapter_index=chapter_index,
                target_word_count=target_word_count,
                language=language,
            )
        except Exception as exc:
            logger.exception("Error generating text for chapter %r.", chapter_title)
            return GenerationResult.fail(TEXT_STAGE, _failure_kind(exc), str(exc))

        if not text or not text.strip():
            logger.warning("Chapter %r came back without any text.", chapter_title)
            return GenerationResult.fail(
                TEXT_STAGE, FailureKind.EMPTY_RESPONSE, "Model returned no chapter text."
            )
        return GenerationResult.success(text.strip())

    def synthesize_chapter_image(self, image_prompt: str) -> GenerationResult[str]:
        try:
            url = self._image_generator.generate_image(image_prompt)
        except Exception as exc:
            logger.exception("Error generating chapter image.")
            return GenerationResult.fail(IMAGE_STAGE, _failure_kind(exc), str(exc))

        if not url:
            return GenerationResult.fail(IMAGE_STAGE, FailureKind.EMPTY_RESPONSE, "Model returned no image.")
        return GenerationResult.success(url)
