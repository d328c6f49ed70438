"""
Tests for the pagination engine.
"""

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from chapterbook.pdf_generation import BookLayoutEngine, ImageBlock, ImageSize, LayoutConfig
from chapterbook.pipeline import Book, Chapter, GenerationStatus

from conftest import split_lines

# 200pt tall page, 20pt margins: body lines may occupy y in [40, 170] after a one-line heading.
SMALL_PAGE = LayoutConfig(
    page_width=300,
    page_height=200,
    margin=20,
    title_font_size=10,
    title_top=30,
    subtitle_font_size=8,
    heading_font_size=10,
    heading_spacing=10,
    image_spacing=10,
    body_font_size=10,
    line_height_factor=1.0,
)


def one_chapter_book(content, image_url=""):
    return Book(
        title="Small",
        chapters=[Chapter("Only", "p", content, image_url, GenerationStatus.COMPLETE)],
    )


def body_lines(count):
    return "\n".join(f"line {i}" for i in range(1, count + 1))


@pytest.fixture
def engine():
    return BookLayoutEngine(SMALL_PAGE, wrap_text=split_lines)


class TestTitlePage:
    def test_title_and_subtitle_centered(self, engine):
        document = engine.layout(Book(title="The Last\nStarlight", chapters=[]))

        assert document.page_count == 1
        runs = document.pages[0].text_runs
        assert [(run.text, run.y) for run in runs] == [
            ("The Last", 30),
            ("Starlight", 40),
            ("An AI-Generated Story", 50),
        ]
        assert all(run.align == "center" and run.x == 150 for run in runs)

    def test_long_title_continues_on_next_page(self, engine):
        title = "\n".join(f"t{i}" for i in range(1, 17))

        document = engine.layout(Book(title=title, chapters=[]))

        assert document.page_count == 2
        first, second = (page.text_runs for page in document.pages)
        assert [run.text for run in first] == [f"t{i}" for i in range(1, 16)]
        assert first[-1].y == 170
        assert [(run.text, run.y) for run in second] == [("t16", 20), ("An AI-Generated Story", 30)]
        for page in document.pages:
            assert all(run.y + run.font_size <= SMALL_PAGE.bottom_limit for run in page.text_runs)

    def test_subtitle_moves_when_title_fills_page(self, engine):
        title = "\n".join(f"t{i}" for i in range(1, 16))

        document = engine.layout(Book(title=title, chapters=[]))

        assert document.page_count == 2
        assert len(document.pages[0].text_runs) == 15
        assert [(run.text, run.y) for run in document.pages[1].text_runs] == [
            ("An AI-Generated Story", SMALL_PAGE.margin)
        ]


class TestBodyFlow:
    def test_exact_fit_stays_on_page(self, engine):
        document = engine.layout(one_chapter_book(body_lines(14)))

        assert document.page_count == 2
        last = document.pages[1].text_runs[-1]
        assert last.text == "line 14"
        assert last.y + SMALL_PAGE.body_line_height == SMALL_PAGE.bottom_limit

    def test_one_more_line_breaks_page(self, engine):
        document = engine.layout(one_chapter_book(body_lines(15)))

        assert document.page_count == 3
        overflow = document.pages[2].text_runs
        assert [(run.text, run.y) for run in overflow] == [("line 15", SMALL_PAGE.margin)]

    def test_one_unit_taller_breaks_page(self):
        config = LayoutConfig(**{**SMALL_PAGE.__dict__, "heading_spacing": 11})
        document = BookLayoutEngine(config, wrap_text=split_lines).layout(one_chapter_book(body_lines(14)))

        assert document.page_count == 3
        assert document.pages[2].text_runs[0].text == "line 14"

    def test_heading_starts_each_chapter_page(self, engine, finished_book):
        document = engine.layout(finished_book)

        headings = [page.text_runs[0] for page in document.pages[1:]]
        assert [run.text for run in headings] == ["Chapter 1: Arrival", "Chapter 3: Home"]
        assert all(run.y == SMALL_PAGE.margin for run in headings)
        assert document.pages[1].text_runs[1].y == 40


class TestImages:
    def measure(self, width, height):
        return lambda source: ImageSize(width, height)

    def test_image_scaled_to_content_width(self, engine):
        document = engine.layout(one_chapter_book("text", "img"), self.measure(520, 260))

        image = document.pages[1].images[0]
        assert image == ImageBlock("img", 20, 40, 260, 130)

    def test_image_exactly_filling_page_stays(self, engine):
        # 260 wide * 140/260 = 140 tall, bottom edge at 40 + 140 = 180.
        document = engine.layout(one_chapter_book("text", "img"), self.measure(260, 140))

        assert document.pages[1].images[0].y == 40
        assert document.pages[2].text_runs[0].text == "text"

    def test_image_that_does_not_fit_moves_to_next_page(self, engine):
        document = engine.layout(one_chapter_book("text", "img"), self.measure(260, 150))

        assert document.pages[1].images == []
        assert document.pages[2].images[0].y == SMALL_PAGE.margin
        assert document.pages[2].images[0].height == 150

    def test_image_taller_than_page_is_scaled_down(self, engine):
        document = engine.layout(one_chapter_book("text", "img"), self.measure(260, 520))

        image = document.pages[2].images[0]
        assert image.height == SMALL_PAGE.content_height
        assert image.width == 80
        assert image.x == 20 + (260 - 80) / 2
        assert image.y + image.height <= SMALL_PAGE.bottom_limit

    def test_unmeasurable_image_is_skipped(self, engine):
        document = engine.layout(one_chapter_book("text", "broken"), lambda source: None)

        assert document.page_count == 2
        assert document.pages[1].images == []
        assert document.pages[1].text_runs[1].y == 40

    def test_chapter_without_image_never_measures(self, engine):
        calls = []
        engine.layout(one_chapter_book("text"), lambda source: calls.append(source))
        assert calls == []


class TestDocumentProperties:
    def test_error_chapters_produce_no_pages(self, engine, finished_book):
        with_error = engine.layout(finished_book)
        finished_book.chapters.pop(1)
        without_error = engine.layout(finished_book)

        assert with_error.page_count == 3
        assert without_error.page_count == with_error.page_count
        all_text = [run.text for page in with_error.pages for run in page.text_runs]
        assert not any("Lost" in text for text in all_text)

    def test_layout_is_deterministic(self, engine, finished_book):
        measure = lambda source: ImageSize(400, 300)  # noqa: E731

        first = engine.layout(finished_book, measure)
        second = engine.layout(finished_book, measure)

        assert first == second

    def test_real_text_wrapping_never_overflows(self):
        config = LayoutConfig()
        paragraph = "The keeper climbed the spiral stair once more, counting every step. " * 120
        book = one_chapter_book(paragraph + "\n\n" + paragraph)

        document = BookLayoutEngine(config).layout(book)

        assert document.page_count > 3
        for page in document.pages[1:]:
            for run in page.text_runs:
                if run.font_name != config.body_font:
                    continue
                assert run.y + config.body_line_height <= config.bottom_limit + 1e-9
                assert stringWidth(run.text, run.font_name, run.font_size) <= config.content_width
