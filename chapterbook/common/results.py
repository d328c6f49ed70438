"""
Explicit success/failure values returned across the generation client boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    BACKEND_ERROR = "backend_error"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    INVALID_RESPONSE = "invalid_response"


@dataclass(frozen=True)
class GenerationFailure:
    """
    Describes why a generation stage produced no value.

    Attributes
    ----------
    stage:
        Which operation failed (``outline``, ``chapter_text`` or ``chapter_image``).
    kind:
        Coarse failure category.
    message:
        Human-readable detail, usually the backend exception text.
    """

    stage: str
    kind: FailureKind
    message: str

    def describe(self) -> str:
        return f"{self.stage} failed ({self.kind.value}): {self.message}"


@dataclass(frozen=True)
class GenerationResult(Generic[T]):
    """
    Either a produced value or a :class:`GenerationFailure`, never both.
    """

    value: T | None = None
    failure: GenerationFailure | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.failure is None):
            raise ValueError("GenerationResult needs exactly one of value or failure.")

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "GenerationResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, stage: str, kind: FailureKind, message: str) -> "GenerationResult[T]":
        return cls(failure=GenerationFailure(stage=stage, kind=kind, message=message))
