"""
Structured representation of the parameters a reader picks before a book is generated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

MIN_CHAPTERS = 1

LANGUAGES: tuple[str, ...] = (
    "English",
    "Italiano",
    "Español",
    "Français",
    "Deutsch",
    "Português",
)


class ArtStyle(str, Enum):
    PHOTOREALISTIC = "Photorealistic"
    WATERCOLOR = "Watercolor"
    ANIME = "Anime"
    FANTASY = "Fantasy Art"
    PIXEL_ART = "Pixel Art"
    MINIMALIST = "Minimalist Line Art"

    @classmethod
    def parse(cls, value: Any) -> "ArtStyle":
        """
        Accept either the display value ("Fantasy Art") or the member name ("fantasy").
        """
        if isinstance(value, cls):
            return value

        text = str(value or "").strip()
        normalized = text.lower().replace("-", "_").replace(" ", "_")
        for style in cls:
            if text.lower() == style.value.lower() or normalized == style.name.lower():
                return style

        choices = ", ".join(style.value for style in cls)
        raise ValueError(f"Unsupported art style {value!r}. Choose one of: {choices}.")


def _coerce_required_str(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    raise ValueError(f"Book request must include a non-empty '{keys[0]}' field.")


def _coerce_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected an integer for {field_name}, got {value!r}") from exc


@dataclass(frozen=True)
class BookRequest:
    """
    Canonical representation of a book generation request.

    Attributes
    ----------
    title:
        Book title, also used for the exported file name.
    genre:
        Genre or short premise steering the outline.
    chapter_count:
        Number of chapters the outline must contain (at least one).
    total_pages:
        Approximate length of the printed book. Only used for pacing, so it must
        be at least ``chapter_count``.
    art_style:
        Illustration style forwarded into the outline's image prompts.
    language:
        Display name of the language the chapters are written in.
    """

    title: str
    genre: str
    chapter_count: int = 5
    total_pages: int = 25
    art_style: ArtStyle = ArtStyle.FANTASY
    language: str = "English"

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("title must be a non-empty string.")
        if not self.genre.strip():
            raise ValueError("genre must be a non-empty string.")
        if self.chapter_count < MIN_CHAPTERS:
            raise ValueError(f"chapter_count must be at least {MIN_CHAPTERS}, received {self.chapter_count}.")
        if self.total_pages < self.chapter_count:
            raise ValueError(
                f"total_pages ({self.total_pages}) must be at least chapter_count ({self.chapter_count})."
            )
        if not self.language.strip():
            raise ValueError("language must be a non-empty string.")
        object.__setattr__(self, "art_style", ArtStyle.parse(self.art_style))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BookRequest":
        """
        Build a request from a dict-like object (e.g., parsed JSON/YAML).
        """
        chapter_count = _coerce_int(data.get("chapter_count", data.get("chapters", 5)), "chapter_count")
        total_pages = _coerce_int(data.get("total_pages", data.get("pages", 25)), "total_pages")
        language = data.get("language") or data.get("story_language") or "English"

        return cls(
            title=_coerce_required_str(data, "title"),
            genre=_coerce_required_str(data, "genre", "premise"),
            chapter_count=chapter_count,
            total_pages=total_pages,
            art_style=ArtStyle.parse(data.get("art_style") or data.get("style") or ArtStyle.FANTASY),
            language=str(language).strip(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "genre": self.genre,
            "chapter_count": self.chapter_count,
            "total_pages": self.total_pages,
            "art_style": self.art_style.value,
            "language": self.language,
        }


def load_request_file(path: Path | str) -> BookRequest:
    """
    Load a :class:`BookRequest` from a YAML or JSON file.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported request file format. Use YAML or JSON.")

    if not isinstance(data, Mapping):
        raise ValueError("Request file must deserialize to a mapping.")
    return BookRequest.from_mapping(data)
