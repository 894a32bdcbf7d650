from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.constants import HOMEROOM_SUBJECT


def normalize_subject_name(value) -> str:
    return re.sub(r"\s+", " ", str(value).strip().lower())


def same_subject(left, right) -> bool:
    if not left or not right:
        return False
    return normalize_subject_name(left) == normalize_subject_name(right)


@dataclass(frozen=True)
class Student:
    """Domain entity: Student.

    Several enrollment representations co-exist in stored documents
    (subjectEnrollments, selectedSubjects, subjects, subject); all are kept.
    """

    id: str
    first_name: str
    last_name: str
    student_id: Optional[str] = None
    grade_level: Optional[int] = None
    section: Optional[str] = None
    section_id: Optional[str] = None
    selected_subjects: tuple[str, ...] = ()
    subject_enrollments: tuple[Mapping[str, Any], ...] = ()
    subjects: tuple[str, ...] = ()
    subject: Optional[str] = None
    email: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def reversed_name(self) -> str:
        return f"{self.last_name}, {self.first_name}"

    def enrolled_subject_names(self, subject_names_by_id: Mapping[str, str] | None = None) -> list[str]:
        names: list[str] = []
        for enrollment in self.subject_enrollments:
            name = enrollment.get("subjectName") or enrollment.get("subject") or enrollment.get("name")
            if name:
                names.append(name)
        for ref in self.selected_subjects:
            if not ref:
                continue
            names.append((subject_names_by_id or {}).get(ref, ref))
        names.extend(s for s in self.subjects if s)
        if self.subject:
            names.append(self.subject)
        return names

    def is_enrolled_in(self, subject_name: str, subject_names_by_id: Mapping[str, str] | None = None) -> bool:
        if same_subject(subject_name, HOMEROOM_SUBJECT):
            return True
        return any(same_subject(name, subject_name) for name in self.enrolled_subject_names(subject_names_by_id))

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: Optional[str] = None) -> "Student":
        grade = doc.get("gradeLevel", doc.get("year"))
        try:
            grade_level = int(grade) if grade not in (None, "") else None
        except (TypeError, ValueError):
            grade_level = None

        enrollments = doc.get("subjectEnrollments") or []
        return cls(
            id=str(doc_id or doc.get("id") or ""),
            first_name=str(doc.get("firstName") or ""),
            last_name=str(doc.get("lastName") or ""),
            student_id=str(doc["studentId"]) if doc.get("studentId") else None,
            grade_level=grade_level,
            section=doc.get("section") or doc.get("sectionName"),
            section_id=doc.get("sectionId"),
            selected_subjects=tuple(str(s) for s in (doc.get("selectedSubjects") or []) if s),
            subject_enrollments=tuple(e for e in enrollments if isinstance(e, Mapping)),
            subjects=tuple(str(s) for s in (doc.get("subjects") or []) if s),
            subject=doc.get("subject"),
            email=doc.get("email"),
        )


@dataclass(frozen=True)
class Section:
    id: str
    name: str
    grade_level: Optional[int] = None
    section_name: Optional[str] = None
    room: Optional[str] = None
    homeroom_teacher: Optional[str] = None
    subject_teachers: tuple[str, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return f"Grade {self.grade_level}-{self.section_name}"

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], doc_id: Optional[str] = None) -> "Section":
        grade = doc.get("gradeLevel")
        return cls(
            id=str(doc_id or doc.get("id") or ""),
            name=str(doc.get("name") or ""),
            grade_level=int(grade) if isinstance(grade, (int, str)) and str(grade).isdigit() else None,
            section_name=doc.get("sectionName"),
            room=doc.get("room"),
            homeroom_teacher=doc.get("homeroomTeacher") or doc.get("teacher"),
            subject_teachers=tuple(doc.get("subjectTeachers") or ()),
        )
