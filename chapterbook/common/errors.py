"""
Exceptions raised by ChapterBook.
"""


class ChapterBookError(Exception):
    """Base exception for ChapterBook."""


class OutlineGenerationError(ChapterBookError):
    """The outline stage failed; no book was produced."""

    def __init__(self, message: str, *, failure=None):
        self.failure = failure
        super().__init__(message)


class InvalidStatusTransition(ChapterBookError, ValueError):
    """A chapter was moved along an edge the status machine does not allow."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move chapter from {current.value!r} to {requested.value!r}.")


class BookExportError(ChapterBookError):
    """Rendering or writing the PDF failed."""


class CompletionResponseError(ChapterBookError, ValueError):
    """A chat completion came back without the expected message."""
