from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

from ..core.exceptions import MatchAmbiguous
from ..students.model import Student
from .factory import MatchStrategyFactory
from .model import SnapshotEntry
from .strategies.base import MatchResult, MatchStrategy

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(candidate: Any) -> Mapping[str, Any]:
    return candidate


class StudentMatcher:
    """Resolve a student against differently keyed attendance rows.

    Strategies are tried in order and the first one with any hit wins. When
    that strategy hits several rows the result reports how many, so callers
    can send it for review instead of trusting the first row.
    """

    def __init__(self, strategies: Optional[Sequence[MatchStrategy]] = None):
        self._strategies = list(strategies) if strategies is not None else MatchStrategyFactory().ordered()

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self._strategies]

    def find(
        self,
        student: Student,
        candidates: Sequence[T],
        *,
        fields: Callable[[T], Mapping[str, Any]] = _identity,
    ) -> Optional[MatchResult[T]]:
        for strategy in self._strategies:
            hits = [c for c in candidates if strategy.matches(student, fields(c))]
            if not hits:
                continue
            if len(hits) > 1:
                logger.warning(
                    "%d rows match %s via %s; taking the first", len(hits), student.full_name, strategy.name
                )
            return MatchResult(candidate=hits[0], strategy=strategy.name, confidence=strategy.confidence, candidates=len(hits))
        return None

    def find_strict(
        self,
        student: Student,
        candidates: Sequence[T],
        *,
        fields: Callable[[T], Mapping[str, Any]] = _identity,
    ) -> Optional[MatchResult[T]]:
        result = self.find(student, candidates, fields=fields)
        if result is not None and result.ambiguous:
            raise MatchAmbiguous(student.full_name, result.strategy, result.candidates)
        return result

    def find_entry(self, student: Student, entries: Sequence[SnapshotEntry]) -> Optional[MatchResult[SnapshotEntry]]:
        return self.find(student, entries, fields=lambda e: e.raw)
