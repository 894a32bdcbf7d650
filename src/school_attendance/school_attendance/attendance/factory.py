from __future__ import annotations

from dataclasses import dataclass

from .strategies.base import MatchStrategy
from .strategies.id_strategies import AlternateIdStrategy, StudentIdStrategy
from .strategies.name_strategies import (
    CaseInsensitiveNameStrategy,
    ExactNameStrategy,
    FirstNameSubstringStrategy,
    ReversedNameStrategy,
)


@dataclass
class MatchStrategyFactory:
    """Factory Pattern: build the ordered strategy list, strongest first."""

    allow_substring: bool = True

    def ordered(self) -> list[MatchStrategy]:
        strategies: list[MatchStrategy] = [
            ExactNameStrategy(),
            StudentIdStrategy(),
            ReversedNameStrategy(),
            CaseInsensitiveNameStrategy(),
        ]
        if self.allow_substring:
            strategies.append(FirstNameSubstringStrategy())
        strategies.append(AlternateIdStrategy())
        return strategies

    def for_baseline(self) -> list[MatchStrategy]:
        """Homeroom baselines are matched on exact name or id only."""
        return [ExactNameStrategy(), StudentIdStrategy()]
