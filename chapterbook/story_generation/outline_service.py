"""
Service layer for producing chapter outlines via LiteLLM-compatible models.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from chapterbook.common import ChatResult, CompletionCallable, call_chat_completion, prompt_messages

from .prompting import StoryPrompt, build_outline_prompt
from .request import ArtStyle

_FENCE_PATTERN = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


@dataclass(frozen=True)
class OutlineEntry:
    """
    One planned chapter: its title and the prompt for its illustration.
    """

    chapter_title: str
    image_prompt: str

    def as_dict(self) -> dict[str, Any]:
        return {"chapter_title": self.chapter_title, "image_prompt": self.image_prompt}


class BookOutlineGenerator:
    """
    Turns a book title, genre and chapter count into an ordered outline.

    The number of returned entries is not checked against the requested count;
    that decision belongs to the caller.
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
            or os.getenv("CHAPTERBOOK_OUTLINE_MODEL")
            or os.getenv("LITELLM_MODEL")
            or "gpt-4.1-mini"
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._request_timeout = request_timeout

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    def generate_outline(
        self,
        *,
        title: str,
        genre: str,
        chapter_count: int,
        art_style: ArtStyle | str,
        language: str,
        temperature: float = 0.8,
        max_output_tokens: int = 2500,
        **response_kwargs: Any,
    ) -> list[OutlineEntry]:
        """
        Invoke the configured LLM and parse its JSON outline.
        """
        prompt: StoryPrompt = build_outline_prompt(
            title=title,
            genre=genre,
            chapter_count=chapter_count,
            art_style=art_style,
            language=language,
        )

        result: ChatResult = self._completion_fn(
            model=self._model,
            messages=prompt_messages(prompt.system, prompt.user),
            temperature=temperature,
            max_tokens=max_output_tokens,
            api_key=self._api_key,
            timeout=self._request_timeout,
            **response_kwargs,
        )

        if not result.text:
            raise RuntimeError("LLM response did not contain any text content.")

        return _convert_to_entries(parse_outline_json(result.text))


def parse_outline_json(raw_text: str) -> Sequence[Any]:
    """
    Parse the outline payload, tolerating Markdown code fences and a wrapping object.
    """
    text = raw_text.strip()
    match = _FENCE_PATTERN.match(text)
    if match and match.group(2):
        text = match.group(2).strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Failed to parse outline response as JSON.") from exc

    if isinstance(parsed, dict):
        parsed = parsed.get("chapters", parsed.get("outline"))

    if not isinstance(parsed, list):
        raise ValueError("Outline JSON must be a list of chapters.")

    return parsed


def _convert_to_entries(items: Iterable[Any]) -> list[OutlineEntry]:
    entries: list[OutlineEntry] = []
    for item in items:
        try:
            title = str(item["chapter_title"]).strip()
            image_prompt = str(item["image_prompt"]).strip()
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Invalid outline entry: {item}") from exc

        if not title:
            raise ValueError(f"Outline entry is missing a chapter title: {item}")

        entries.append(OutlineEntry(chapter_title=title, image_prompt=image_prompt))
    return entries
