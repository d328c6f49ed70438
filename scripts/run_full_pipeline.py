"""
CLI to generate a complete illustrated book and, optionally, its PDF.

Usage:
    python scripts/run_full_pipeline.py \
        --title "The Last Starlight" \
        --genre "Space opera about a lighthouse keeper" \
        --chapters 5 --pages 25 --art-style "Fantasy Art" \
        --output the_last_starlight.yaml --pdf-dir exports/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from chapterbook import (  # noqa: E402
    ArtStyle,
    Book,
    BookGenerationClient,
    BookGenerationController,
    BookPDFBuilder,
    BookRequest,
    GenerationStatus,
)
from chapterbook.common import BookExportError, OutlineGenerationError  # noqa: E402
from chapterbook.pdf_generation import PAGE_SIZES, sanitize_filename  # noqa: E402
from chapterbook.story_generation import LANGUAGES, load_request_file  # noqa: E402

STATUS_MARKERS = {
    GenerationStatus.PENDING: "·",
    GenerationStatus.GENERATING_TEXT: "…",
    GenerationStatus.GENERATING_IMAGE: "…",
    GenerationStatus.COMPLETE: "✓",
    GenerationStatus.ERROR: "✗",
}


class ProgressTracker:
    """
    Provides user-friendly command-line progress updates for the generation run.
    """

    def __init__(self) -> None:
        self._chapter_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "outline:generating":
                chapters = payload.get("chapter_count")
                self._write(f"[1/3] Crafting a {chapters}-chapter outline for \"{payload.get('title')}\"...")
            case "outline:ready":
                total = payload.get("total_chapters", 0)
                words = payload.get("target_word_count")
                self._write(f"[2/3] Outline ready. Writing {total} chapters (~{words} words each)...")
                self._chapter_bar = tqdm(total=total, desc="Chapters", unit="chapter")
            case "chapter:status":
                self._on_chapter_status(payload)
            case "book:complete":
                self.close()
                done = payload.get("completed_chapters", 0)
                failed = payload.get("failed_chapters", 0)
                self._write(f"[3/3] Generation finished: {done} complete, {failed} failed.")

    def _on_chapter_status(self, payload: Dict[str, Any]) -> None:
        if self._chapter_bar is None:
            return
        status = payload.get("status")
        number = payload.get("number")
        title = payload.get("title") or ""
        truncated = (title[:40] + "…") if len(title) > 40 else title
        if status is GenerationStatus.GENERATING_TEXT:
            self._chapter_bar.set_description(f"Writing chapter {number}: {truncated}")
        elif status is GenerationStatus.GENERATING_IMAGE:
            self._chapter_bar.set_description(f"Illustrating chapter {number}: {truncated}")
        elif status is GenerationStatus.ERROR:
            self._write(f"  ✗ Chapter {number} could not be generated.")
            self._chapter_bar.update(1)
        elif status is GenerationStatus.COMPLETE:
            if "failure" in payload:
                self._write(f"  ! Chapter {number} has no illustration.")
            self._chapter_bar.update(1)

    def close(self) -> None:
        if self._chapter_bar is not None:
            self._chapter_bar.close()
            self._chapter_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an illustrated multi-chapter book.")
    parser.add_argument(
        "--request",
        default=None,
        help="Path to a YAML/JSON request file. Individual flags below override its values.",
    )
    parser.add_argument("--title", default=None, help="Book title.")
    parser.add_argument("--genre", default=None, help="Genre or short premise.")
    parser.add_argument("--chapters", type=int, default=None, help="Number of chapters (default: 5).")
    parser.add_argument(
        "--pages",
        type=int,
        default=None,
        help="Approximate total page count, used for chapter length (default: 25).",
    )
    parser.add_argument(
        "--art-style",
        default=None,
        help=f"Illustration style. One of: {', '.join(style.value for style in ArtStyle)}.",
    )
    parser.add_argument(
        "--language",
        default=None,
        help=f"Language to write in, e.g. {', '.join(LANGUAGES)}.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output YAML file for the generated book (default: <sanitized title>.yaml).",
    )
    parser.add_argument(
        "--pdf-dir",
        default=None,
        help="Also export the PDF into this directory once generation finishes.",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="a4",
        help="Page size for the PDF export (default: a4).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Timeout in seconds for each generation request (default: 120).",
    )
    parser.add_argument(
        "--text-model",
        default=None,
        help="Override the LiteLLM model used for outline and chapter text.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args()


def build_request(args: argparse.Namespace) -> BookRequest:
    base: Dict[str, Any] = {}
    if args.request:
        base = load_request_file(args.request).to_dict()

    overrides = {
        "title": args.title,
        "genre": args.genre,
        "chapter_count": args.chapters,
        "total_pages": args.pages,
        "art_style": args.art_style,
        "language": args.language,
    }
    base.update({key: value for key, value in overrides.items() if value is not None})
    return BookRequest.from_mapping(base)


def print_summary(book: Book) -> None:
    tqdm.write(f"\n{book.title}")
    for number, chapter in enumerate(book.chapters, start=1):
        marker = STATUS_MARKERS[chapter.status]
        illustration = " [illustrated]" if chapter.image_url else ""
        tqdm.write(f"  {marker} Chapter {number}: {chapter.title}{illustration}")


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        request = build_request(args)
    except ValueError as exc:
        print(f"Invalid request: {exc}", file=sys.stderr)
        return 2

    client = BookGenerationClient(text_model=args.text_model, request_timeout=args.timeout)
    tracker = ProgressTracker()
    controller = BookGenerationController(client, progress_callback=tracker)

    try:
        book = controller.run(request)
    except OutlineGenerationError as exc:
        print(f"An error occurred: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.close()

    print_summary(book)

    output_path = Path(args.output or f"{sanitize_filename(book.title)}.yaml")
    output_path.write_text(book.to_yaml(), encoding="utf-8")
    print(f"Saved book to {output_path}")

    if args.pdf_dir:
        builder = BookPDFBuilder(page_size=PAGE_SIZES[args.page_size])
        try:
            pdf_path = builder.build(book, args.pdf_dir)
        except BookExportError as exc:
            print(f"PDF export failed: {exc}. Retry with scripts/render_book_pdf.py.", file=sys.stderr)
            return 1
        print(f"Rendered PDF to {pdf_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
