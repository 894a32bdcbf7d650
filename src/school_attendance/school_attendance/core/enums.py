from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for permission checks."""

    ADMIN = "admin"
    HOMEROOM = "homeroom"
    SUBJECT = "subject"
    SUPERVISOR = "supervisor"


class AttendanceStatus(str, Enum):
    """Attendance status of one student for one subject on one day.

    NOT_RECORDED marks the absence of a record and is never a valid input
    for a teacher edit.
    """

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
    NOT_RECORDED = "not-recorded"

    @classmethod
    def recordable(cls) -> tuple["AttendanceStatus", ...]:
        return (cls.PRESENT, cls.ABSENT, cls.LATE, cls.EXCUSED)

    @property
    def is_attending(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class SessionState(str, Enum):
    """Lifecycle of an attendance editing session."""

    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"
    CLOSED = "closed"


class MatchConfidence(str, Enum):
    EXACT = "exact"
    STRONG = "strong"
    WEAK = "weak"


class CellType(str, Enum):
    NOT_ENROLLED = "not-enrolled"
    PENDING = "pending"
    TAKEN = "taken"


class WeekParity(str, Enum):
    WEEK1 = "week1"
    WEEK2 = "week2"
