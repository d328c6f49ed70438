"""
Pagination engine that flows a generated book onto fixed-size pages.

Everything here is measured in points with the origin at the top-left corner of
the page and ``y`` growing downwards; the PDF builder flips the axis when it
draws. Laying out is a pure computation: the same book, configuration and image
measurements always give the same pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit

from chapterbook.pipeline.models import Book

WrapFunction = Callable[[str, str, float, float], list[str]]


@dataclass(frozen=True)
class ImageSize:
    width: float
    height: float


ImageMeasurer = Callable[[str], Union[ImageSize, None]]


@dataclass(frozen=True)
class LayoutConfig:
    """
    Page geometry and typography used when laying out a book.

    Attributes
    ----------
    page_width, page_height:
        Page size in points (A4 by default).
    margin:
        Margin on every side. Nothing is placed below ``page_height - margin``.
    title_top:
        Top of the first title line on the title page.
    subtitle_text:
        Fixed line shown under the book title.
    heading_spacing, image_spacing:
        Vertical gap after the chapter heading block and after an illustration.
    line_height_factor:
        Body leading as a multiple of the body font size.
    """

    page_width: float = A4[0]
    page_height: float = A4[1]
    margin: float = 40.0
    title_font: str = "Helvetica-Bold"
    title_font_size: float = 28.0
    title_top: float = 80.0
    subtitle_text: str = "An AI-Generated Story"
    subtitle_font: str = "Helvetica"
    subtitle_font_size: float = 16.0
    heading_font: str = "Helvetica-Bold"
    heading_font_size: float = 20.0
    heading_spacing: float = 20.0
    image_spacing: float = 20.0
    body_font: str = "Helvetica"
    body_font_size: float = 12.0
    line_height_factor: float = 1.15

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_height(self) -> float:
        return self.page_height - 2 * self.margin

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margin

    @property
    def body_line_height(self) -> float:
        return self.body_font_size * self.line_height_factor


@dataclass(frozen=True)
class TextRun:
    """A single line of text; ``y`` is the top of its line box."""

    text: str
    x: float
    y: float
    font_name: str
    font_size: float
    align: str = "left"


@dataclass(frozen=True)
class ImageBlock:
    """An illustration placed with its top-left corner at ``(x, y)``."""

    source: str
    x: float
    y: float
    width: float
    height: float


PageElement = Union[TextRun, ImageBlock]


@dataclass
class LayoutPage:
    number: int
    elements: list[PageElement] = field(default_factory=list)

    @property
    def text_runs(self) -> list[TextRun]:
        return [element for element in self.elements if isinstance(element, TextRun)]

    @property
    def images(self) -> list[ImageBlock]:
        return [element for element in self.elements if isinstance(element, ImageBlock)]


@dataclass
class DocumentLayout:
    page_width: float
    page_height: float
    pages: list[LayoutPage] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)


class _PageFlow:
    """Tracks the current page and the vertical cursor while elements are placed."""

    def __init__(self, config: LayoutConfig) -> None:
        self.config = config
        self.pages: list[LayoutPage] = []
        self.y = config.margin

    @property
    def page(self) -> LayoutPage:
        return self.pages[-1]

    def new_page(self, top: float | None = None) -> None:
        self.pages.append(LayoutPage(number=len(self.pages) + 1))
        self.y = self.config.margin if top is None else top

    def fits(self, height: float) -> bool:
        return self.y + height <= self.config.bottom_limit

    def place(self, element: PageElement) -> None:
        self.page.elements.append(element)


class BookLayoutEngine:
    """
    Lays out the title page and every completed chapter of a :class:`Book`.

    ``wrap_text`` splits text into lines no wider than a given width and defaults
    to ReportLab's :func:`simpleSplit`, so measurements match what gets drawn.
    """

    def __init__(self, config: LayoutConfig | None = None, *, wrap_text: WrapFunction = simpleSplit) -> None:
        self.config = config or LayoutConfig()
        self._wrap_text = wrap_text

    def layout(self, book: Book, measure_image: ImageMeasurer | None = None) -> DocumentLayout:
        flow = _PageFlow(self.config)
        self._layout_title_page(flow, book.title)

        for number, chapter in book.completed_chapters():
            flow.new_page()
            self._layout_heading(flow, f"Chapter {number}: {chapter.title}")
            if chapter.image_url and measure_image is not None:
                size = measure_image(chapter.image_url)
                if size is not None and size.width > 0 and size.height > 0:
                    self._layout_image(flow, chapter.image_url, size)
            self._layout_body(flow, chapter.content)

        return DocumentLayout(
            page_width=self.config.page_width,
            page_height=self.config.page_height,
            pages=flow.pages,
        )

    # ------------------------------------------------------------------ blocks

    def _layout_title_page(self, flow: _PageFlow, title: str) -> None:
        config = self.config
        flow.new_page(top=config.title_top)
        centre = config.page_width / 2

        # Overlong titles continue on a fresh page rather than running into the margin.
        for line in self._wrap(title, config.title_font, config.title_font_size):
            if not flow.fits(config.title_font_size):
                flow.new_page()
            flow.place(TextRun(line, centre, flow.y, config.title_font, config.title_font_size, "center"))
            flow.y += config.title_font_size

        if not flow.fits(config.subtitle_font_size):
            flow.new_page()
        flow.place(
            TextRun(
                config.subtitle_text,
                centre,
                flow.y,
                config.subtitle_font,
                config.subtitle_font_size,
                "center",
            )
        )

    def _layout_heading(self, flow: _PageFlow, heading: str) -> None:
        config = self.config
        lines = self._wrap(heading, config.heading_font, config.heading_font_size)
        for offset, line in enumerate(lines):
            flow.place(
                TextRun(
                    line,
                    config.margin,
                    flow.y + offset * config.heading_font_size,
                    config.heading_font,
                    config.heading_font_size,
                )
            )
        flow.y += len(lines) * config.heading_font_size + config.heading_spacing

    def _layout_image(self, flow: _PageFlow, source: str, size: ImageSize) -> None:
        config = self.config
        width = config.content_width
        height = size.height * width / size.width

        # Never let one illustration be taller than a page can hold.
        if height > config.content_height:
            width = width * config.content_height / height
            height = config.content_height

        if not flow.fits(height):
            flow.new_page()

        x = config.margin + (config.content_width - width) / 2
        flow.place(ImageBlock(source, x, flow.y, width, height))
        flow.y += height + config.image_spacing

    def _layout_body(self, flow: _PageFlow, content: str) -> None:
        config = self.config
        line_height = config.body_line_height
        for line in self._wrap(content, config.body_font, config.body_font_size):
            if not flow.fits(line_height):
                flow.new_page()
            flow.place(TextRun(line, config.margin, flow.y, config.body_font, config.body_font_size))
            flow.y += line_height

    def _wrap(self, text: str, font_name: str, font_size: float) -> list[str]:
        return list(self._wrap_text(text, font_name, font_size, self.config.content_width))
