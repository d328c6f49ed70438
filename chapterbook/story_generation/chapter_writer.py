"""
Writes individual chapter bodies from the outline.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Sequence

from chapterbook.common import ChatResult, CompletionCallable, call_chat_completion, prompt_messages

from .outline_service import OutlineEntry
from .prompting import build_chapter_prompt

logger = logging.getLogger(__name__)


class ChapterTextGenerator:
    """
    Produces the body text of one chapter at a time.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("CHAPTERBOOK_CHAPTER_MODEL")
            or os.getenv("CHAPTERBOOK_OUTLINE_MODEL")
            or os.getenv("LITELLM_MODEL")
            or "gpt-4.1-mini"
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._request_timeout = request_timeout

    @property
    def model(self) -> str:
        return self._model

    def write_chapter(
        self,
        *,
        book_title: str,
        chapter_title: str,
        outline: Sequence[OutlineEntry],
        chapter_index: int,
        target_word_count: int,
        language: str,
        temperature: float = 0.75,
        **response_kwargs: Any,
    ) -> str:
        """
        Return the chapter body. An empty string means the model produced nothing.
        """
        preceding = [entry.chapter_title for entry in outline[:chapter_index]]
        prompt = build_chapter_prompt(
            book_title=book_title,
            chapter_title=chapter_title,
            preceding_titles=preceding,
            chapter_index=chapter_index,
            target_word_count=target_word_count,
            language=language,
        )

        # Roughly 1.5 tokens per word, with headroom for non-English text.
        max_tokens = max(1024, int(target_word_count * 2))
        result: ChatResult = self._completion_fn(
            model=self._model,
            messages=prompt_messages(prompt.system, prompt.user),
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=self._api_key,
            timeout=self._request_timeout,
            **response_kwargs,
        )
        if result.truncated:
            logger.warning("Chapter %r hit the token limit and may end mid-sentence.", chapter_title)
        return result.text
