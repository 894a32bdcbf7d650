from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Mapping, Optional

from ..core.constants import HOMEROOM_SUBJECT
from ..core.enums import AttendanceStatus, CellType, MatchConfidence


@dataclass(frozen=True)
class AttendanceRecord:
    """Canonical attendance record of one student for one subject on one day."""

    status: AttendanceStatus
    notes: str = ""
    has_behavior_issue: bool = False
    has_merit: bool = False
    timestamp: str = ""

    @property
    def is_recorded(self) -> bool:
        return self.status != AttendanceStatus.NOT_RECORDED

    def with_changes(self, **changes) -> "AttendanceRecord":
        return replace(self, **changes)

    def to_document(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "notes": self.notes,
            "hasBehaviorIssue": self.has_behavior_issue,
            "hasMerit": self.has_merit,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class SnapshotEntry:
    """One stored student row: the raw document plus its normalized record."""

    raw: Mapping[str, Any]
    record: AttendanceRecord

    @property
    def student_id(self) -> Optional[str]:
        value = self.raw.get("studentId")
        return str(value) if value is not None else None

    @property
    def student_name(self) -> str:
        return str(self.raw.get("studentName") or "")


@dataclass(frozen=True)
class SubjectSnapshot:
    """A saved day's attendance for one subject (immutable once loaded)."""

    subject: str
    entries: tuple[SnapshotEntry, ...] = ()
    day: Optional[date] = None
    section_id: Optional[str] = None
    is_homeroom: bool = False
    taken_by: Optional[str] = None
    time: Optional[str] = None
    doc_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def records(self) -> list[AttendanceRecord]:
        return [e.record for e in self.entries]

    @property
    def raw_entries(self) -> list[Mapping[str, Any]]:
        return [e.raw for e in self.entries]


@dataclass(frozen=True)
class HomeroomBaseline:
    """The day's homeroom records, shown to subject teachers as context only."""

    entries: tuple[SnapshotEntry, ...] = ()
    teacher_name: str = ""
    taken_at: str = ""
    sections: int = 0

    @property
    def subject(self) -> str:
        return HOMEROOM_SUBJECT


@dataclass(frozen=True)
class AttendanceCell:
    """What the monitor grid shows for one student in one subject."""

    type: CellType
    display: str = ""
    tooltip: str = ""
    record: Optional[AttendanceRecord] = None
    has_behavior_flag: bool = False
    has_merit_flag: bool = False
    confidence: Optional[MatchConfidence] = None
    ambiguous: bool = False
    snapshot: Optional[SubjectSnapshot] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "display": self.display,
            "tooltip": self.tooltip,
            "record": self.record.to_document() if self.record else None,
            "hasBehaviorFlag": self.has_behavior_flag,
            "hasMeritFlag": self.has_merit_flag,
            "confidence": self.confidence.value if self.confidence else None,
            "ambiguous": self.ambiguous,
        }
