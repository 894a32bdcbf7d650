from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

from ...core.enums import MatchConfidence
from ...students.model import Student

T = TypeVar("T")


@dataclass(frozen=True)
class MatchResult(Generic[T]):
    candidate: T
    strategy: str
    confidence: MatchConfidence
    candidates: int = 1

    @property
    def ambiguous(self) -> bool:
        return self.candidates > 1


class MatchStrategy(ABC):
    """Strategy Pattern: one way of pairing a student with a stored record."""

    name: str = ""
    confidence: MatchConfidence = MatchConfidence.STRONG

    @abstractmethod
    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError
