"""
Shared book data model mutated by the generation controller and read by the PDF assembler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

import yaml

from chapterbook.common import InvalidStatusTransition
from chapterbook.story_generation import OutlineEntry


class GenerationStatus(str, Enum):
    PENDING = "Pending"
    GENERATING_TEXT = "Generating Text"
    GENERATING_IMAGE = "Generating Image"
    COMPLETE = "Complete"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationStatus.COMPLETE, GenerationStatus.ERROR)


_ALLOWED_TRANSITIONS: dict[GenerationStatus, frozenset[GenerationStatus]] = {
    GenerationStatus.PENDING: frozenset({GenerationStatus.GENERATING_TEXT}),
    GenerationStatus.GENERATING_TEXT: frozenset(
        {GenerationStatus.GENERATING_IMAGE, GenerationStatus.ERROR}
    ),
    GenerationStatus.GENERATING_IMAGE: frozenset({GenerationStatus.COMPLETE}),
    GenerationStatus.COMPLETE: frozenset(),
    GenerationStatus.ERROR: frozenset(),
}

_CONTENT_STATUSES = frozenset({GenerationStatus.GENERATING_IMAGE, GenerationStatus.COMPLETE})


@dataclass
class Chapter:
    """
    A single chapter of the book and its progress through generation.

    ``content`` is set when text generation succeeds and ``image_url`` when the
    chapter completes; both are written once and never replaced.
    """

    title: str
    image_prompt: str
    content: str = ""
    image_url: str = ""
    status: GenerationStatus = GenerationStatus.PENDING

    @classmethod
    def from_outline(cls, entry: OutlineEntry) -> "Chapter":
        return cls(title=entry.chapter_title, image_prompt=entry.image_prompt)

    def advance(
        self,
        status: GenerationStatus,
        *,
        content: str | None = None,
        image_url: str | None = None,
    ) -> None:
        """
        Move the chapter to ``status``, storing text or image data that arrives with it.
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(self.status, status)

        if status is GenerationStatus.GENERATING_IMAGE:
            if not content or not content.strip():
                raise ValueError("Moving to 'Generating Image' requires non-empty chapter content.")
            self.content = content
        elif content is not None:
            raise ValueError("Chapter content can only be stored when text generation succeeds.")

        if image_url is not None:
            if status is not GenerationStatus.COMPLETE:
                raise ValueError("An image reference can only be stored when the chapter completes.")
            self.image_url = image_url

        self.status = status

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "image_prompt": self.image_prompt,
            "content": self.content,
            "image_url": self.image_url,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Chapter":
        try:
            title = str(payload["title"]).strip()
            status = GenerationStatus(payload.get("status", GenerationStatus.PENDING.value))
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid chapter entry: {payload}") from exc

        chapter = cls(
            title=title,
            image_prompt=str(payload.get("image_prompt", "")).strip(),
            content=str(payload.get("content") or ""),
            image_url=str(payload.get("image_url") or ""),
            status=status,
        )
        if bool(chapter.content.strip()) != (status in _CONTENT_STATUSES):
            raise ValueError(
                f"Chapter '{title}' has status {status.value!r} but "
                f"{'no' if not chapter.content.strip() else 'unexpected'} content."
            )
        return chapter


@dataclass
class Book:
    """Ordered collection of chapters produced by one generation run."""

    title: str
    chapters: list[Chapter] = field(default_factory=list)

    @classmethod
    def from_outline(cls, title: str, outline: Sequence[OutlineEntry]) -> "Book":
        return cls(title=title, chapters=[Chapter.from_outline(entry) for entry in outline])

    @property
    def is_generation_complete(self) -> bool:
        return all(chapter.status.is_terminal for chapter in self.chapters)

    def active_chapters(self) -> list[int]:
        """Indices of chapters that are still waiting or being generated."""
        return [index for index, chapter in enumerate(self.chapters) if not chapter.status.is_terminal]

    def completed_chapters(self) -> Iterator[tuple[int, Chapter]]:
        """Yield ``(number, chapter)`` for finished chapters, numbered by their position in the book."""
        for number, chapter in enumerate(self.chapters, start=1):
            if chapter.status is GenerationStatus.COMPLETE:
                yield number, chapter

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "chapters": [chapter.to_dict() for chapter in self.chapters],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Book":
        if not str(payload.get("title", "")).strip():
            raise ValueError("Book payload must include a non-empty 'title'.")
        chapters_payload = payload.get("chapters")
        if not isinstance(chapters_payload, list):
            raise ValueError("Book payload must include a 'chapters' list.")

        return cls(
            title=str(payload["title"]).strip(),
            chapters=[Chapter.from_dict(entry) for entry in chapters_payload],
        )

    @classmethod
    def from_yaml(cls, source: str | Path) -> "Book":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Book YAML must deserialize to a mapping.")
        return cls.from_dict(data)
