from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence, Union

from ..core.constants import COLLECTION_SECTIONS, COLLECTION_STUDENTS, COLLECTION_SUBJECTS
from ..core.exceptions import UnknownSubject
from ..schedules.model import Subject
from ..store.repository import Document, DocumentStore, Unsubscribe
from .model import Section, Student, same_subject

logger = logging.getLogger(__name__)

SectionIds = Union[str, Sequence[str]]


def _as_ids(section_ids: SectionIds) -> list[str]:
    if isinstance(section_ids, str):
        return [section_ids]
    return [s for s in section_ids if s]


class RosterService:
    """Use case: resolve which students belong in an attendance session."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def subjects(self, *, include_inactive: bool = False) -> list[Subject]:
        subjects = [Subject.from_document(d, d.get("id")) for d in self._store.list_documents(COLLECTION_SUBJECTS)]
        return subjects if include_inactive else [s for s in subjects if s.is_active]

    def subject_names_by_id(self) -> dict[str, str]:
        return {s.id: s.name for s in self.subjects(include_inactive=True) if s.id}

    def get_subject(self, ref: str) -> Subject:
        """Resolve a subject by id or (normalized) name."""

        for subject in self.subjects(include_inactive=True):
            if subject.id == ref or same_subject(subject.name, ref):
                return subject
        raise UnknownSubject(ref)

    def sections(self) -> list[Section]:
        return [Section.from_document(d, d.get("id")) for d in self._store.list_documents(COLLECTION_SECTIONS)]

    def students_in_sections(self, section_ids: SectionIds) -> list[Student]:
        students: list[Student] = []
        for section_id in _as_ids(section_ids):
            docs = self._store.query(COLLECTION_STUDENTS, sectionId=section_id)
            students.extend(Student.from_document(d, d.get("id")) for d in docs)
        return students

    def students_for_section(
        self,
        section_ids: SectionIds,
        subject_name: str,
        *,
        is_homeroom: bool = False,
    ) -> list[Student]:
        """Students of one or several sections taking `subject_name`.

        Homeroom sessions take every student of the sections. Students in more
        than one of the given sections appear once.
        """

        students = self.students_in_sections(section_ids)
        return self.filter_roster(students, subject_name, is_homeroom=is_homeroom)

    def filter_roster(
        self,
        students: Iterable[Student],
        subject_name: str,
        *,
        is_homeroom: bool = False,
        subject_names_by_id: Optional[dict[str, str]] = None,
    ) -> list[Student]:
        names = subject_names_by_id
        if not is_homeroom and names is None:
            names = self.subject_names_by_id()
        seen: set[str] = set()
        roster: list[Student] = []
        for student in students:
            if not student.id or student.id in seen:
                continue
            if not is_homeroom and not student.is_enrolled_in(subject_name, names):
                continue
            seen.add(student.id)
            roster.append(student)

        if not roster:
            logger.info("No students enrolled in %s for the requested sections", subject_name)
        return roster

    def watch_roster(
        self,
        section_ids: SectionIds,
        subject_name: str,
        listener: Callable[[list[Student]], None],
        *,
        is_homeroom: bool = False,
    ) -> Unsubscribe:
        """Push the section roster to `listener` now and whenever students change."""

        wanted = set(_as_ids(section_ids))

        def _on_students(docs: Sequence[Document]) -> None:
            students = [Student.from_document(d, d.get("id")) for d in docs if d.get("sectionId") in wanted]
            listener(self.filter_roster(students, subject_name, is_homeroom=is_homeroom))

        return self._store.subscribe(COLLECTION_STUDENTS, _on_students)
