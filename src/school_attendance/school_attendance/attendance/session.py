from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import iso_timestamp, now_local
from ..common.validators import parse_flag, parse_notes, parse_status
from ..core.constants import NOTES_MAX_LENGTH
from ..core.enums import AttendanceStatus, SessionState
from ..core.exceptions import SessionStateError, UnknownStudent, ValidationError
from ..reports.calculator.base import rate_percent
from ..students.model import Student
from .factory import MatchStrategyFactory
from .matcher import StudentMatcher
from .model import AttendanceRecord, HomeroomBaseline

logger = logging.getLogger(__name__)

ALL = "all"
SORT_KEYS = ("name", "grade", "section", "status", "behavior")


@dataclass(frozen=True)
class SessionFilters:
    search_term: str = ""
    status_filter: str = ALL
    grade_filter: str = ALL
    behavior_filter: str = ALL
    homeroom_filter: str = ALL
    sort_by: Optional[str] = None
    sort_direction: str = "asc"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SessionFilters":
        data = data or {}
        return cls(
            search_term=str(data.get("searchTerm") or data.get("search_term") or ""),
            status_filter=str(data.get("statusFilter") or data.get("status_filter") or ALL),
            grade_filter=str(data.get("gradeFilter") or data.get("grade_filter") or ALL),
            behavior_filter=str(data.get("behaviorFilter") or data.get("behavior_filter") or ALL),
            homeroom_filter=str(data.get("homeroomFilter") or data.get("homeroom_filter") or ALL),
            sort_by=data.get("sortBy") or data.get("sort_by"),
            sort_direction=str(data.get("sortDirection") or data.get("sort_direction") or "asc"),
        )


@dataclass(frozen=True)
class SessionStats:
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    behavior_flagged: int = 0
    merit_awarded: int = 0
    total: int = 0
    attendance_rate: int = 0


@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    valid_count: int
    total_count: int
    errors: list[dict] = field(default_factory=list)


class AttendanceSession:
    """Editable attendance of one section/subject for one day.

    Every student starts from a blank "present" record; the homeroom
    baseline is kept only for display and filtering and is never copied
    into the records. Mutations are allowed in READY only.
    """

    def __init__(
        self,
        *,
        section_id: str,
        subject: str,
        day: date,
        is_homeroom: bool = False,
        homeroom: Optional[HomeroomBaseline] = None,
        matcher: Optional[StudentMatcher] = None,
        clock: Callable[[], datetime] = now_local,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.section_id = section_id
        self.subject = subject
        self.day = day
        self.is_homeroom = is_homeroom
        self.homeroom = homeroom
        self.state = SessionState.LOADING
        self.last_error: Optional[str] = None

        self._clock = clock
        self._opened_at = clock()
        self._baseline_matcher = matcher or StudentMatcher(MatchStrategyFactory().for_baseline())
        self._students: dict[str, Student] = {}
        self._records: dict[str, AttendanceRecord] = {}
        self._pending_roster: Optional[list[Student]] = None

    # ----- lifecycle -----

    def load(self, students: Sequence[Student], homeroom: Optional[HomeroomBaseline] = None) -> None:
        if self.state not in (SessionState.LOADING, SessionState.READY):
            raise SessionStateError(f"Cannot load a session in state {self.state.value}")
        if homeroom is not None:
            self.homeroom = homeroom
        self.initialize(students)
        self.state = SessionState.READY

    def fail_load(self, message: str) -> None:
        if self.state != SessionState.LOADING:
            raise SessionStateError(f"Cannot fail loading in state {self.state.value}")
        self.last_error = message
        self.state = SessionState.ERROR
        logger.warning("Session %s failed to load: %s", self.session_id, message)

    def initialize(self, students: Sequence[Student]) -> None:
        """Reset every student to the blank default record."""

        if self.state not in (SessionState.LOADING, SessionState.READY):
            raise SessionStateError(f"Cannot initialize a session in state {self.state.value}")

        roster = {s.id: s for s in students if s.id}
        opened = iso_timestamp(self._opened_at)
        self._students = roster
        self._records = {sid: AttendanceRecord(status=AttendanceStatus.PRESENT, timestamp=opened) for sid in roster}

    def begin_save(self) -> Mapping[str, AttendanceRecord]:
        self._require(SessionState.READY, "save")
        self.state = SessionState.SAVING
        self.last_error = None
        return self.records

    def mark_saved(self) -> None:
        self._require(SessionState.SAVING, "complete a save")
        self.state = SessionState.SAVED
        self._pending_roster = None

    def mark_save_failed(self, message: str) -> None:
        self._require(SessionState.SAVING, "fail a save")
        self.state = SessionState.READY
        self.last_error = message
        logger.warning("Save of session %s failed: %s", self.session_id, message)
        if self._pending_roster is not None:
            roster, self._pending_roster = self._pending_roster, None
            self.reconcile_roster(roster)

    def discard(self) -> None:
        """Close without saving; all edits are dropped."""

        if self.state == SessionState.SAVING:
            raise SessionStateError("Cannot close a session while it is saving")
        self._records = {}
        self._pending_roster = None
        self.state = SessionState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state in (SessionState.LOADING, SessionState.READY, SessionState.SAVING)

    # ----- read access -----

    @property
    def students(self) -> list[Student]:
        return list(self._students.values())

    @property
    def records(self) -> Mapping[str, AttendanceRecord]:
        return MappingProxyType(dict(self._records))

    def record(self, student_id: str) -> AttendanceRecord:
        record = self._records.get(student_id)
        if record is None:
            raise UnknownStudent(student_id)
        return record

    def student(self, student_id: str) -> Student:
        student = self._students.get(student_id)
        if student is None:
            raise UnknownStudent(student_id)
        return student

    def homeroom_record(self, student: Student) -> Optional[AttendanceRecord]:
        if not self.homeroom:
            return None
        result = self._baseline_matcher.find_entry(student, self.homeroom.entries)
        return result.candidate.record if result else None

    # ----- mutations -----

    def set_status(self, student_id: str, status) -> AttendanceRecord:
        self._require(SessionState.READY, "edit")
        new_status = parse_status(status)
        record = self.record(student_id)
        updated = record.with_changes(status=new_status, timestamp=iso_timestamp(self._clock()))
        self._records[student_id] = updated
        return updated

    def set_notes(self, student_id: str, text: Optional[str]) -> AttendanceRecord:
        self._require(SessionState.READY, "edit")
        record = self.record(student_id)
        notes = parse_notes(text, NOTES_MAX_LENGTH)
        updated = record.with_changes(notes=notes)
        self._records[student_id] = updated
        return updated

    def set_behavior_flag(self, student_id: str, flagged: bool) -> AttendanceRecord:
        self._require(SessionState.READY, "edit")
        updated = self.record(student_id).with_changes(has_behavior_issue=bool(flagged))
        self._records[student_id] = updated
        return updated

    def set_merit_flag(self, student_id: str, merit: bool) -> AttendanceRecord:
        self._require(SessionState.READY, "edit")
        updated = self.record(student_id).with_changes(has_merit=bool(merit))
        self._records[student_id] = updated
        return updated

    def apply_edit(self, student_id: str, changes: Mapping[str, Any]) -> AttendanceRecord:
        """Apply status, notes and flag changes to one record, all or nothing.

        `changes` uses the document field names (status, notes,
        hasBehaviorIssue, hasMerit); every value is checked before the record
        is replaced.
        """

        self._require(SessionState.READY, "edit")
        record = self.record(student_id)
        fields: dict[str, Any] = {}
        if "status" in changes:
            fields["status"] = parse_status(changes["status"])
            fields["timestamp"] = iso_timestamp(self._clock())
        if "notes" in changes:
            fields["notes"] = parse_notes(changes["notes"], NOTES_MAX_LENGTH)
        if "hasBehaviorIssue" in changes:
            fields["has_behavior_issue"] = parse_flag(changes["hasBehaviorIssue"], "hasBehaviorIssue")
        if "hasMerit" in changes:
            fields["has_merit"] = parse_flag(changes["hasMerit"], "hasMerit")
        if not fields:
            raise ValidationError("Nothing to apply: send status, notes, hasBehaviorIssue or hasMerit")

        updated = record.with_changes(**fields)
        self._records[student_id] = updated
        return updated

    def bulk_set_status(self, status, filters: Optional[SessionFilters] = None) -> list[str]:
        """Set `status` on the students currently visible under `filters`."""

        self._require(SessionState.READY, "edit")
        new_status = parse_status(status)
        visible = [s.id for s in self.filtered_and_sorted(filters)]
        stamp = iso_timestamp(self._clock())

        updated = dict(self._records)
        for sid in visible:
            updated[sid] = updated[sid].with_changes(status=new_status, timestamp=stamp)
        self._records = updated
        return visible

    def bulk_set_behavior_flag(self, flagged: bool, filters: Optional[SessionFilters] = None) -> list[str]:
        self._require(SessionState.READY, "edit")
        visible = [s.id for s in self.filtered_and_sorted(filters)]

        updated = dict(self._records)
        for sid in visible:
            updated[sid] = updated[sid].with_changes(has_behavior_issue=bool(flagged))
        self._records = updated
        return visible

    def reconcile_roster(self, students: Iterable[Student]) -> tuple[list[str], list[str]]:
        """Align records with a pushed roster: drop removed students, default new ones.

        While saving, the roster is held back and applied when the session
        returns to READY.
        """

        roster = [s for s in students if s.id]
        if self.state == SessionState.SAVING:
            self._pending_roster = roster
            return [], []
        if self.state not in (SessionState.LOADING, SessionState.READY):
            return [], []

        incoming = {s.id: s for s in roster}
        removed = [sid for sid in self._students if sid not in incoming]
        added = [sid for sid in incoming if sid not in self._students]

        stamp = iso_timestamp(self._clock())
        records = {
            sid: self._records.get(sid) or AttendanceRecord(status=AttendanceStatus.PRESENT, timestamp=stamp)
            for sid in incoming
        }
        self._students = incoming
        self._records = records

        if removed:
            logger.info("Dropped %d students no longer in %s: %s", len(removed), self.section_id, removed)
        if added:
            logger.info("Added %d students to session %s", len(added), self.session_id)
        return added, removed

    # ----- derived views -----

    def filtered_and_sorted(self, filters: Optional[SessionFilters] = None) -> list[Student]:
        f = filters or SessionFilters()
        result = list(self._students.values())

        if f.search_term:
            term = f.search_term.lower()
            result = [
                s
                for s in result
                if term in s.full_name.lower()
                or (s.student_id and term in s.student_id.lower())
                or term in s.id.lower()
            ]

        if f.status_filter and f.status_filter != ALL:
            result = [s for s in result if self._records[s.id].status.value == f.status_filter]

        if f.behavior_filter == "flagged":
            result = [s for s in result if self._records[s.id].has_behavior_issue]
        elif f.behavior_filter == "clean":
            result = [s for s in result if not self._records[s.id].has_behavior_issue]

        if f.homeroom_filter and f.homeroom_filter != ALL and self.homeroom:
            def _homeroom_status(student: Student) -> Optional[str]:
                record = self.homeroom_record(student)
                return record.status.value if record else None

            result = [s for s in result if _homeroom_status(s) == f.homeroom_filter]

        if f.grade_filter and f.grade_filter != ALL:
            result = [s for s in result if s.grade_level is not None and str(s.grade_level) == f.grade_filter]

        if f.sort_by in SORT_KEYS:
            result.sort(key=self._sort_key(f.sort_by), reverse=f.sort_direction == "desc")
        return result

    def _sort_key(self, sort_by: str):
        if sort_by == "name":
            return lambda s: s.full_name.lower()
        if sort_by == "grade":
            return lambda s: s.grade_level or 0
        if sort_by == "section":
            return lambda s: s.section or ""
        if sort_by == "status":
            return lambda s: self._records[s.id].status.value
        # Flagged students first.
        return lambda s: not self._records[s.id].has_behavior_issue

    def stats(self) -> SessionStats:
        counts = {status: 0 for status in AttendanceStatus.recordable()}
        flagged = merit = 0
        for record in self._records.values():
            if record.status in counts:
                counts[record.status] += 1
            flagged += record.has_behavior_issue
            merit += record.has_merit

        total = len(self._students)
        attending = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
        return SessionStats(
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
            behavior_flagged=flagged,
            merit_awarded=merit,
            total=total,
            attendance_rate=rate_percent(attending, total),
        )

    def validate(self) -> ValidationReport:
        errors: list[dict] = []
        valid = 0
        for student in self._students.values():
            record = self._records.get(student.id)
            problems: list[str] = []
            if record is None:
                problems.append("Missing attendance record")
            else:
                if record.status not in AttendanceStatus.recordable():
                    problems.append("Invalid status value")
                if len(record.notes) > NOTES_MAX_LENGTH:
                    problems.append(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")

            if problems:
                errors.append({"student_id": student.id, "student_name": student.full_name, "errors": problems})
            else:
                valid += 1

        return ValidationReport(
            is_valid=not errors and bool(self._students),
            valid_count=valid,
            total_count=len(self._students),
            errors=errors,
        )

    def _require(self, state: SessionState, action: str) -> None:
        if self.state != state:
            raise SessionStateError(f"Cannot {action} while the session is {self.state.value}")
