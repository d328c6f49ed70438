"""
Render generated books into printable PDFs.
"""

from __future__ import annotations

import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Sequence

from reportlab.lib.pagesizes import A4, LETTER
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from chapterbook.common import BookExportError
from chapterbook.pipeline.models import Book

from .images import ImageLoader
from .layout import BookLayoutEngine, DocumentLayout, ImageBlock, LayoutConfig, TextRun

logger = logging.getLogger(__name__)

PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
}

DEFAULT_FILENAME = "ai_generated_book"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE | re.ASCII)

_FONT_SEARCH_ROOTS = [
    Path("/usr/share/fonts"),
    Path("/usr/share/fonts/truetype/dejavu"),
    Path("/usr/local/share/fonts"),
    Path("/Library/Fonts"),
    Path.home() / "Library" / "Fonts",
    Path("C:/Windows/Fonts"),
]


def sanitize_filename(title: str) -> str:
    """
    Base file name derived from a book title.

    ``"The Last: Starlight!"`` becomes ``"the_last__starlight_"``.
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("_", title).lower()
    return safe or DEFAULT_FILENAME


class BookPDFBuilder:
    """
    Lay out a :class:`Book` and export it as a single PDF.

    The PDF contains a title page followed by every completed chapter: heading,
    optional illustration and body text flowing across as many pages as needed.
    Chapters whose generation failed are left out.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["a4"],
        margin: float = 40.0,
        request_timeout: float = 30.0,
        image_loader: ImageLoader | None = None,
        use_system_fonts: bool = True,
    ) -> None:
        self.page_size = page_size
        self.margin = margin
        self.image_loader = image_loader or ImageLoader(request_timeout=request_timeout)

        regular, bold = self._configure_fonts() if use_system_fonts else ("Helvetica", "Helvetica-Bold")
        self.layout_config = LayoutConfig(
            page_width=page_size[0],
            page_height=page_size[1],
            margin=margin,
            title_font=bold,
            subtitle_font=regular,
            heading_font=bold,
            body_font=regular,
        )
        self.engine = BookLayoutEngine(self.layout_config)

    def layout(self, book: Book) -> DocumentLayout:
        return self.engine.layout(book, self.image_loader.measure)

    def render_bytes(self, book: Book) -> bytes:
        """
        Render the whole book in memory; raises :class:`BookExportError` on failure.
        """
        try:
            document = self.layout(book)
            buffer = BytesIO()
            pdf = canvas.Canvas(buffer, pagesize=self.page_size)
            pdf.setTitle(book.title)
            for page in document.pages:
                self._draw_page(pdf, page.elements)
                pdf.showPage()
            pdf.save()
        except Exception as exc:
            logger.exception("PDF generation failed for %r.", book.title)
            raise BookExportError(f"Could not render '{book.title}' to PDF: {exc}") from exc
        return buffer.getvalue()

    def build(self, book: Book, output_path: Path | str) -> Path:
        """
        Write the PDF and return its path.

        ``output_path`` may be a directory, in which case the file is named after the book title.
        Nothing is written unless rendering succeeded.
        """
        output = Path(output_path)
        if output.is_dir() or not output.suffix:
            output = output / f"{sanitize_filename(book.title)}.pdf"

        data = self.render_bytes(book)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(data)
        except OSError as exc:
            raise BookExportError(f"Could not write PDF to {output}: {exc}") from exc

        logger.info("Wrote %s (%d bytes).", output, len(data))
        return output

    # ------------------------------------------------------------------ drawing

    def _draw_page(self, pdf: canvas.Canvas, elements: Sequence[TextRun | ImageBlock]) -> None:
        height = self.page_size[1]
        for element in elements:
            if isinstance(element, ImageBlock):
                loaded = self.image_loader.load(element.source)
                if loaded is None:
                    continue
                pdf.drawImage(
                    loaded.reader,
                    element.x,
                    height - element.y - element.height,
                    element.width,
                    element.height,
                    mask="auto",
                )
                continue

            pdf.setFont(element.font_name, element.font_size)
            baseline = height - element.y - element.font_size
            if element.align == "center":
                pdf.drawCentredString(element.x, baseline, element.text)
            else:
                pdf.drawString(element.x, baseline, element.text)

    # ------------------------------------------------------------------ fonts

    def _configure_fonts(self) -> tuple[str, str]:
        regular_ready = self._register_font_if_available("DejaVuSans", ["DejaVuSans.ttf"], _FONT_SEARCH_ROOTS)
        bold_ready = self._register_font_if_available(
            "DejaVuSans-Bold", ["DejaVuSans-Bold.ttf"], _FONT_SEARCH_ROOTS
        )
        if regular_ready and bold_ready:
            return "DejaVuSans", "DejaVuSans-Bold"
        return "Helvetica", "Helvetica-Bold"

    @staticmethod
    def _register_font_if_available(
        font_name: str,
        candidate_filenames: Sequence[str],
        search_roots: Sequence[Path],
    ) -> bool:
        if font_name in pdfmetrics.getRegisteredFontNames():
            return True

        for root in search_roots:
            for candidate in candidate_filenames:
                font_path = root / candidate
                if font_path.exists():
                    try:
                        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
                        return True
                    except Exception:
                        logger.debug("Could not register font %s from %s.", font_name, font_path)
                        continue
        return False
