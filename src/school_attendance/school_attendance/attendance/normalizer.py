from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from ..common.datetime_utils import coerce_date, iso_timestamp
from ..common.validators import parse_status
from ..core.constants import HOMEROOM_SUBJECT
from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidStatus
from .flags import check_behavior_flag, check_merit_flag
from .model import AttendanceRecord, HomeroomBaseline, SnapshotEntry, SubjectSnapshot

logger = logging.getLogger(__name__)


def fresh_record(*, now: Optional[datetime] = None) -> AttendanceRecord:
    """Blank record for a student at the start of an editing session."""
    return AttendanceRecord(status=AttendanceStatus.PRESENT, timestamp=iso_timestamp(now))


def normalize_record(
    raw: Mapping[str, Any],
    *,
    fresh: bool = False,
    now: Optional[datetime] = None,
    scan_notes: bool = True,
) -> AttendanceRecord:
    """Canonical record from a stored (possibly legacy) record.

    A missing status means "present" only for a freshly initialized record;
    for stored records it stays NOT_RECORDED. Unknown statuses raise
    InvalidStatus.
    """

    status_value = raw.get("status")
    if status_value in (None, ""):
        status = AttendanceStatus.PRESENT if fresh else AttendanceStatus.NOT_RECORDED
    else:
        status = parse_status(status_value)

    notes = raw.get("notes")
    timestamp = raw.get("timestamp") or raw.get("recordedAt")
    if isinstance(timestamp, datetime):
        timestamp = timestamp.isoformat()

    return AttendanceRecord(
        status=status,
        notes=notes if isinstance(notes, str) else "",
        has_behavior_issue=check_behavior_flag(raw, scan_notes=scan_notes),
        has_merit=check_merit_flag(raw, scan_notes=scan_notes),
        timestamp=str(timestamp) if timestamp else iso_timestamp(now),
    )


def normalize_entries(raw_records: Iterable[Any], *, now: Optional[datetime] = None) -> tuple[SnapshotEntry, ...]:
    """Normalize stored rows, leaving out rows whose status is invalid."""

    entries: list[SnapshotEntry] = []
    for raw in raw_records or ():
        if not isinstance(raw, Mapping):
            logger.warning("Skipping attendance row that is not an object: %r", raw)
            continue
        try:
            entries.append(SnapshotEntry(raw=dict(raw), record=normalize_record(raw, now=now)))
        except InvalidStatus as exc:
            logger.warning("Rejected attendance row for %s: %s", raw.get("studentName") or raw.get("studentId"), exc)
    return tuple(entries)


def _taken_time(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime("%H:%M")
    return str(value)


def snapshot_from_document(doc: Mapping[str, Any], *, now: Optional[datetime] = None) -> SubjectSnapshot:
    day: Optional[date] = None
    if doc.get("date"):
        try:
            day = coerce_date(doc["date"])
        except ValueError:
            logger.warning("Attendance document %s has an unreadable date %r", doc.get("id"), doc.get("date"))

    return SubjectSnapshot(
        subject=str(doc.get("subject") or HOMEROOM_SUBJECT),
        entries=normalize_entries(doc.get("students") or (), now=now),
        day=day,
        section_id=doc.get("sectionId"),
        is_homeroom=bool(doc.get("isHomeroom", False)),
        taken_by=doc.get("takenBy") or doc.get("teacherName"),
        time=_taken_time(doc.get("time") or doc.get("createdAt")),
        doc_id=doc.get("id"),
    )


def combine_homeroom(snapshots: Iterable[SubjectSnapshot]) -> Optional[HomeroomBaseline]:
    """Merge the homeroom snapshots of several sections into one baseline."""

    items = list(snapshots)
    if not items:
        return None

    entries: list[SnapshotEntry] = []
    teacher_name = ""
    taken_at = ""
    for snap in items:
        entries.extend(snap.entries)
        if snap.taken_by and not teacher_name:
            teacher_name = snap.taken_by
        if snap.time and not taken_at:
            taken_at = snap.time

    return HomeroomBaseline(entries=tuple(entries), teacher_name=teacher_name, taken_at=taken_at, sections=len(items))
