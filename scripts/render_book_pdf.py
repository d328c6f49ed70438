"""
Render a generated book YAML into a printable PDF.

Usage:
    python scripts/render_book_pdf.py \
        --book the_last_starlight.yaml \
        --output exports/
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from chapterbook import Book, BookPDFBuilder  # noqa: E402
from chapterbook.common import BookExportError  # noqa: E402
from chapterbook.pdf_generation import PAGE_SIZES  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert a generated book YAML into a PDF.")
    parser.add_argument(
        "--book",
        required=True,
        help="Path to the book YAML (output of run_full_pipeline.py).",
    )
    parser.add_argument(
        "--output",
        default=".",
        help="Destination PDF path or directory (default: current directory, named after the title).",
    )
    parser.add_argument(
        "--page-size",
        choices=sorted(PAGE_SIZES.keys()),
        default="a4",
        help="Page size to render (default: a4).",
    )
    parser.add_argument(
        "--margin",
        type=float,
        default=40.0,
        help="Page margin in points (default: 40).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Timeout in seconds for downloading illustrations (default: 30).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    book = Book.from_yaml(args.book)
    if not book.is_generation_complete:
        print("Book generation has not finished; nothing to render yet.", file=sys.stderr)
        return 1

    builder = BookPDFBuilder(
        page_size=PAGE_SIZES[args.page_size],
        margin=args.margin,
        request_timeout=args.timeout,
    )
    try:
        output = builder.build(book, args.output)
    except BookExportError as exc:
        print(f"Sorry, there was an error creating the PDF file: {exc}", file=sys.stderr)
        return 1

    print(f"Rendered book PDF to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
