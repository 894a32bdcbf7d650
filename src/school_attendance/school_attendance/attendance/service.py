from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import iso_timestamp, now_local
from ..core.constants import (
    COLLECTION_ATTENDANCE,
    DEFAULT_SAVE_RETRIES,
    DEFAULT_SAVE_TIMEOUT_SECONDS,
    HOMEROOM_SUBJECT,
)
from ..core.enums import SessionState
from ..core.exceptions import PersistenceError, SessionStateError, UnknownSession, ValidationError
from ..store.repository import Document, DocumentStore, Unsubscribe
from ..students.model import Student
from ..reports.calculator.base import rate_percent
from ..students.service import RosterService
from .factory import MatchStrategyFactory
from .flags import behavior_mirrors
from .matcher import StudentMatcher
from .model import HomeroomBaseline, SubjectSnapshot
from .normalizer import combine_homeroom, snapshot_from_document
from .session import AttendanceSession

logger = logging.getLogger(__name__)

_SNAPSHOT_NAMESPACE = uuid.UUID("5f0b8f3e-2c1d-4a7b-9e61-3d2a8c4b7f10")


def snapshot_doc_id(document: Document) -> str:
    """Same id for every save of one (date, sectionId, subject) snapshot.

    A retry that overlaps an abandoned attempt then writes the same document
    instead of a second one.
    """

    key = "|".join(str(document[k]) for k in ("date", "sectionId", "subject"))
    return uuid.uuid5(_SNAPSHOT_NAMESPACE, key).hex


class AttendanceService:
    """Use case: open, edit and save attendance sessions over the document store."""

    def __init__(
        self,
        store: DocumentStore,
        roster: RosterService,
        *,
        strategy_factory: Optional[MatchStrategyFactory] = None,
        save_timeout: float = DEFAULT_SAVE_TIMEOUT_SECONDS,
        save_retries: int = DEFAULT_SAVE_RETRIES,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._roster = roster
        self._strategy_factory = strategy_factory or MatchStrategyFactory()
        self._save_timeout = float(save_timeout)
        self._save_retries = max(0, int(save_retries))
        self._clock = clock
        self._sessions: dict[str, AttendanceSession] = {}
        self._watchers: dict[str, Unsubscribe] = {}

    # ----- sessions -----

    def open_session(
        self,
        *,
        section_ids: Sequence[str],
        subject: str = HOMEROOM_SUBJECT,
        day: Optional[date] = None,
        is_homeroom: bool = False,
        watch_roster: bool = True,
    ) -> AttendanceSession:
        section_ids = [s for s in section_ids if s]
        if not section_ids:
            raise ValidationError("At least one section is required")

        if is_homeroom:
            subject_name = HOMEROOM_SUBJECT
        else:
            subject_name = self._roster.get_subject(subject).name
            is_homeroom = subject_name == HOMEROOM_SUBJECT

        session = AttendanceSession(
            section_id=section_ids[0],
            subject=subject_name,
            day=day or self._clock().date(),
            is_homeroom=is_homeroom,
            matcher=StudentMatcher(self._strategy_factory.for_baseline()),
            clock=self._clock,
        )
        self._sessions[session.session_id] = session

        try:
            students = self._roster.students_for_section(section_ids, subject_name, is_homeroom=is_homeroom)
            baseline = None if is_homeroom else self.load_homeroom_baseline(students, section_ids, session.day)
        except PersistenceError as exc:
            session.fail_load(str(exc))
            self._forget(session.session_id)
            raise

        session.load(students, baseline)
        logger.info(
            "Opened session %s: %s for %s on %s (%d students)",
            session.session_id, subject_name, section_ids, session.day, len(students),
        )

        if watch_roster:
            self._watchers[session.session_id] = self._roster.watch_roster(
                section_ids, subject_name, session.reconcile_roster, is_homeroom=is_homeroom
            )
        return session

    def get_session(self, session_id: str) -> AttendanceSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSession(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        """Discard unsaved edits and forget the session."""

        session = self.get_session(session_id)
        session.discard()
        self._forget(session_id)

    def push_roster(self, session_id: str, students: Iterable[Student]) -> tuple[list[str], list[str]]:
        return self.get_session(session_id).reconcile_roster(students)

    def _forget(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        unsubscribe = self._watchers.pop(session_id, None)
        if unsubscribe:
            unsubscribe()

    # ----- loading -----

    def load_homeroom_baseline(
        self, students: Sequence[Student], section_ids: Sequence[str], day: date
    ) -> Optional[HomeroomBaseline]:
        """Combine the day's homeroom documents of every section the roster comes from."""

        sections = list(dict.fromkeys(s.section_id for s in students if s.section_id)) or list(section_ids)
        snapshots: list[SubjectSnapshot] = []
        for section_id in sections:
            docs = self._store.query(COLLECTION_ATTENDANCE, date=day.isoformat(), sectionId=section_id, isHomeroom=True)
            snapshots.extend(snapshot_from_document(d, now=self._clock()) for d in docs)

        baseline = combine_homeroom(snapshots)
        if baseline is None:
            logger.info("No homeroom attendance yet for %s on %s", sections, day)
        return baseline

    def load_day(self, day: date, *, section_ids: Optional[Sequence[str]] = None) -> dict[str, SubjectSnapshot]:
        """Saved snapshots of one day keyed by subject name.

        Documents of several sections for the same subject are merged.
        """

        filters: dict[str, Any] = {"date": day.isoformat()}
        docs: list[Document] = []
        if section_ids:
            for section_id in section_ids:
                docs.extend(self._store.query(COLLECTION_ATTENDANCE, sectionId=section_id, **filters))
        else:
            docs.extend(self._store.query(COLLECTION_ATTENDANCE, **filters))

        by_subject: dict[str, SubjectSnapshot] = {}
        for doc in docs:
            snap = snapshot_from_document(doc, now=self._clock())
            existing = by_subject.get(snap.subject)
            if existing is None:
                by_subject[snap.subject] = snap
                continue
            by_subject[snap.subject] = SubjectSnapshot(
                subject=existing.subject,
                entries=existing.entries + snap.entries,
                day=existing.day,
                section_id=existing.section_id,
                is_homeroom=existing.is_homeroom or snap.is_homeroom,
                taken_by=existing.taken_by or snap.taken_by,
                time=existing.time or snap.time,
                doc_id=existing.doc_id,
            )
        return by_subject

    def load_history(self, days: Iterable[date], *, section_ids: Optional[Sequence[str]] = None) -> dict[date, dict]:
        return {day: self.load_day(day, section_ids=section_ids) for day in days}

    # ----- saving -----

    def build_document(self, session: AttendanceSession, *, recorded_by: str = "", teacher_id: Optional[str] = None) -> Document:
        moment = self._clock()
        recorded_at = iso_timestamp(moment)
        records = session.records
        students = session.students

        rows: list[Document] = []
        for student in students:
            record = records.get(student.id)
            if record is None:
                continue
            row = {
                "studentId": student.id,
                "studentName": student.full_name,
                **record.to_document(),
                "gradeLevel": student.grade_level,
                "section": student.section,
                "recordedAt": recorded_at,
                "recordedBy": recorded_by,
            }
            row.update(behavior_mirrors(record.has_behavior_issue))
            rows.append(row)

        total = len(students)
        return {
            "sectionId": session.section_id,
            "subject": session.subject,
            "isHomeroom": session.is_homeroom,
            "date": session.day.isoformat(),
            "students": rows,
            "teacherName": recorded_by,
            "teacherId": teacher_id,
            "takenBy": recorded_by,
            "time": moment.strftime("%H:%M"),
            "createdAt": recorded_at,
            "updatedAt": recorded_at,
            "totalStudents": total,
            "recordsSubmitted": len(rows),
            "completionRate": rate_percent(len(rows), total),
        }

    def save_session(self, session_id: str, *, recorded_by: str = "", teacher_id: Optional[str] = None) -> str:
        """Persist the session as the day's snapshot for its section and subject.

        Raises PersistenceError after the last failed attempt; the session is
        then back in READY with all edits intact.
        """

        session = self.get_session(session_id)
        if session.state != SessionState.READY:
            raise SessionStateError(f"Cannot save while the session is {session.state.value}")

        report = session.validate()
        if not report.is_valid:
            details = "; ".join(f"{e['student_name']}: {', '.join(e['errors'])}" for e in report.errors)
            raise ValidationError(f"Attendance is not valid: {details or 'no students'}")

        session.begin_save()
        document = self.build_document(session, recorded_by=recorded_by, teacher_id=teacher_id)
        try:
            doc_id = self._save_with_retry(document)
        except PersistenceError as exc:
            session.mark_save_failed(str(exc))
            raise

        session.mark_saved()
        self._forget(session_id)
        flagged = sum(1 for row in document["students"] if row["hasBehaviorIssue"])
        logger.info(
            "Saved %s attendance for %s on %s as %s (%d students, %d flagged)",
            session.subject, session.section_id, session.day, doc_id, len(document["students"]), flagged,
        )
        return doc_id

    def _save_with_retry(self, document: Document) -> str:
        attempts = self._save_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                return self._with_timeout(lambda: self._upsert(document))
            except PersistenceError as exc:
                last_error = exc
                logger.warning("Save attempt %d/%d failed: %s", attempt, attempts, exc)
        raise PersistenceError(f"Saving attendance failed after {attempts} attempts: {last_error}")

    def _with_timeout(self, fn: Callable[[], str]) -> str:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(fn)
            return future.result(timeout=self._save_timeout)
        except FutureTimeout:
            raise PersistenceError(f"Document store did not answer within {self._save_timeout:g}s") from None
        finally:
            executor.shutdown(wait=False)

    def _upsert(self, document: Document) -> str:
        existing = self._store.query(
            COLLECTION_ATTENDANCE,
            date=document["date"],
            sectionId=document["sectionId"],
            subject=document["subject"],
        )
        if existing:
            doc_id = str(existing[0]["id"])
            update = {k: v for k, v in document.items() if k != "createdAt"}
            self._store.update(COLLECTION_ATTENDANCE, doc_id, update)
            return doc_id
        return self._store.create(COLLECTION_ATTENDANCE, document, doc_id=snapshot_doc_id(document))
