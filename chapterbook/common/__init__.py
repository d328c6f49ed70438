"""
Common utilities shared across ChapterBook modules.
"""

from .errors import (
    BookExportError,
    ChapterBookError,
    CompletionResponseError,
    InvalidStatusTransition,
    OutlineGenerationError,
)
from .llm import ChatResult, CompletionCallable, call_chat_completion, prompt_messages
from .results import FailureKind, GenerationFailure, GenerationResult

__all__ = [
    "BookExportError",
    "ChapterBookError",
    "ChatResult",
    "CompletionCallable",
    "CompletionResponseError",
    "FailureKind",
    "GenerationFailure",
    "GenerationResult",
    "InvalidStatusTransition",
    "OutlineGenerationError",
    "call_chat_completion",
    "prompt_messages",
]
