from __future__ import annotations

from typing import Any, Mapping

from ...core.enums import MatchConfidence
from ...students.model import Student
from .base import MatchStrategy


def _same_id(left: Any, right: Any) -> bool:
    if left in (None, "") or right in (None, ""):
        return False
    return str(left) == str(right)


class StudentIdStrategy(MatchStrategy):
    """studentId against the document id or the school-issued studentId."""

    name = "student-id"
    confidence = MatchConfidence.EXACT

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        stored = fields.get("studentId")
        return _same_id(stored, student.id) or _same_id(stored, student.student_id)


class AlternateIdStrategy(MatchStrategy):
    """Legacy id columns: studentNumber and student_id."""

    name = "alternate-id"
    confidence = MatchConfidence.STRONG

    def matches(self, student: Student, fields: Mapping[str, Any]) -> bool:
        return _same_id(fields.get("studentNumber"), student.student_id) or _same_id(
            fields.get("student_id"), student.id
        )
