from __future__ import annotations

from typing import Any, Mapping

from ...core.enums import MatchConfidence
from ...students.model import Student
from .base import MatchStrategy


def _stored_name(fields: Mapping[str, Any]) -> str | None:
    name = fields.get("studentName")
    return name if isinstance(name, str) else None


class ExactNameStrategy(MatchStrategy):
    """Matches "First Last" exactly as stored."""

    name = "exact-name"
    confidence = MatchConfidence.EXACT

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        return _stored_name(fields) == f"{student.first_name} {student.last_name}"


class ReversedNameStrategy(MatchStrategy):
    """Matches "Last, First" as written by older exports."""

    name = "reversed-name"
    confidence = MatchConfidence.STRONG

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        return _stored_name(fields) == student.reversed_name


class CaseInsensitiveNameStrategy(MatchStrategy):
    name = "case-insensitive-name"
    confidence = MatchConfidence.STRONG

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        stored = _stored_name(fields)
        return stored is not None and stored.lower() == f"{student.first_name} {student.last_name}".lower()


class FirstNameSubstringStrategy(MatchStrategy):
    """Last resort for hand-typed names: first name anywhere in the stored name."""

    name = "first-name-substring"
    confidence = MatchConfidence.WEAK

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        stored = _stored_name(fields)
        if stored is None or not student.first_name:
            return False
        return student.first_name.lower() in stored.lower()
