from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from ..attendance.matcher import StudentMatcher
from ..attendance.model import AttendanceCell, SubjectSnapshot
from ..common.datetime_utils import week_dates
from ..core.enums import AttendanceStatus, CellType
from ..schedules.model import Subject
from ..students.model import Student, same_subject
from .calculator.base import RateCalculator, StatusCounts, rate_percent
from .calculator.standard_calculator import StandardRateCalculator

logger = logging.getLogger(__name__)

DayData = Mapping[str, SubjectSnapshot]
History = Mapping[date, DayData]

STATUS_ICONS = {
    AttendanceStatus.PRESENT: "✅",
    AttendanceStatus.ABSENT: "❌",
    AttendanceStatus.LATE: "⏰",
    AttendanceStatus.EXCUSED: "🆔",
}
PENDING_ICON = "⏳"
BEHAVIOR_ICON = "🚩"
MERIT_ICON = "⭐"
NOTES_ICON = "📝"


def snapshot_for(subject_name: str, day_data: DayData) -> Optional[SubjectSnapshot]:
    """Day data is keyed by subject name; fall back to a normalized name lookup."""
    snap = day_data.get(subject_name)
    if snap is not None:
        return snap
    return next((s for name, s in day_data.items() if same_subject(name, subject_name)), None)


@dataclass(frozen=True)
class OverallSummary:
    total: int
    present: int
    absent: int
    late: int
    excused: int
    not_recorded: int
    pending: int
    homeroom_taken: bool

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
            "not_recorded": self.not_recorded,
            "pending": self.pending,
            "homeroom_taken": self.homeroom_taken,
        }


class AttendanceReportService:
    """Read-only summaries over saved subject snapshots."""

    def __init__(
        self,
        *,
        matcher: Optional[StudentMatcher] = None,
        calculator: Optional[RateCalculator] = None,
        subject_names_by_id: Optional[Mapping[str, str]] = None,
    ):
        self._matcher = matcher or StudentMatcher()
        self._calculator = calculator or StandardRateCalculator()
        self._subject_names_by_id = dict(subject_names_by_id or {})

    def _subject_row(self, subject: Subject, snap: Optional[SubjectSnapshot]) -> dict:
        counts = StatusCounts.from_records(snap.records if snap else ())
        total_taken = counts.total
        return {
            "subject": subject.name,
            "code": subject.code,
            "color": subject.color,
            "present_count": counts.present,
            "absent_count": counts.absent,
            "late_count": counts.late,
            "excused_count": counts.excused,
            "total_taken": total_taken,
            "attendance_rate": self._calculator.attendance_rate(counts),
            "status": "taken" if total_taken > 0 else "not-taken",
            "taken_by": snap.taken_by if snap else None,
            "time": snap.time if snap else None,
        }

    def daily_summary(self, subjects: Sequence[Subject], day_data: DayData) -> list[dict]:
        return [self._subject_row(subject, snapshot_for(subject.name, day_data)) for subject in subjects]

    def weekly_summary(self, subjects: Sequence[Subject], history: History, week_start: date) -> list[dict]:
        week: list[dict] = []
        for day in week_dates(week_start):
            day_data = history.get(day) or {}
            rows = self.daily_summary(subjects, day_data)
            week.append(
                {
                    "date": day.isoformat(),
                    "day_name": day.strftime("%a"),
                    "day_number": day.day,
                    "subjects": [
                        {
                            "name": row["subject"],
                            "code": row["code"],
                            "color": row["color"],
                            "status": row["status"],
                            "attendance_rate": row["attendance_rate"],
                        }
                        for row in rows
                    ],
                }
            )
        return week

    def overall_summary(self, students: Sequence[Student], subjects: Sequence[Subject], day_data: DayData) -> OverallSummary:
        """Daily counts come from the homeroom snapshot only.

        Other snapshots contribute just the number of subjects still pending
        (Homeroom included when it has not been taken).
        """

        homeroom = next((s for s in subjects if s.is_homeroom), None)
        homeroom_snap = snapshot_for(homeroom.name, day_data) if homeroom else None

        by_status = {status: 0 for status in AttendanceStatus}
        if homeroom_snap and not homeroom_snap.is_empty:
            for student in students:
                result = self._matcher.find_entry(student, homeroom_snap.entries)
                status = result.candidate.record.status if result else AttendanceStatus.NOT_RECORDED
                by_status[status] += 1
        else:
            logger.debug("No homeroom snapshot for the day; %d students not recorded", len(students))
            by_status[AttendanceStatus.NOT_RECORDED] = len(students)

        pending = 0
        for subject in subjects:
            snap = snapshot_for(subject.name, day_data)
            if snap is None or snap.is_empty:
                pending += 1

        return OverallSummary(
            total=len(students),
            present=by_status[AttendanceStatus.PRESENT],
            absent=by_status[AttendanceStatus.ABSENT],
            late=by_status[AttendanceStatus.LATE],
            excused=by_status[AttendanceStatus.EXCUSED],
            not_recorded=by_status[AttendanceStatus.NOT_RECORDED],
            pending=pending,
            homeroom_taken=bool(homeroom_snap and not homeroom_snap.is_empty),
        )

    def attendance_cell(
        self,
        student: Student,
        subject: Subject,
        day_data: DayData,
        *,
        subject_names_by_id: Optional[Mapping[str, str]] = None,
    ) -> AttendanceCell:
        names = subject_names_by_id if subject_names_by_id is not None else self._subject_names_by_id
        if not subject.is_homeroom and not student.is_enrolled_in(subject.name, names):
            return AttendanceCell(type=CellType.NOT_ENROLLED, tooltip="Not enrolled in this subject")

        snap = snapshot_for(subject.name, day_data)
        if snap is None or snap.is_empty:
            return AttendanceCell(type=CellType.PENDING, display=PENDING_ICON, tooltip="Attendance pending - not taken yet")

        result = self._matcher.find_entry(student, snap.entries)
        if result is None:
            return AttendanceCell(
                type=CellType.PENDING,
                display=PENDING_ICON,
                tooltip="Student record not found - attendance may be pending",
                snapshot=snap,
            )

        record = result.candidate.record
        if not record.is_recorded:
            return AttendanceCell(
                type=CellType.PENDING,
                display=PENDING_ICON,
                tooltip="No status recorded for this student",
                record=record,
                confidence=result.confidence,
                ambiguous=result.ambiguous,
                snapshot=snap,
            )

        display = STATUS_ICONS[record.status]
        tooltip = record.status.value.capitalize()
        if record.has_behavior_issue:
            display += BEHAVIOR_ICON
        if record.has_merit:
            display += MERIT_ICON
        if record.notes.strip():
            display += NOTES_ICON
            tooltip += f" - {record.notes}"
        if record.has_behavior_issue:
            tooltip += " (Behavior Issue)"
        if record.has_merit:
            tooltip += " (Merit Awarded)"
        if result.ambiguous:
            tooltip += f" ({result.candidates} matching records, please review)"

        return AttendanceCell(
            type=CellType.TAKEN,
            display=display,
            tooltip=tooltip,
            record=record,
            has_behavior_flag=record.has_behavior_issue,
            has_merit_flag=record.has_merit,
            confidence=result.confidence,
            ambiguous=result.ambiguous,
            snapshot=snap,
        )

    def student_stats(self, students: Sequence[Student], subjects: Sequence[Subject], day_data: DayData) -> list[dict]:
        """Per student: how many of the day's taken subjects they attended."""

        rows: list[dict] = []
        for student in students:
            attended = taken = 0
            for subject in subjects:
                snap = snapshot_for(subject.name, day_data)
                if snap is None or snap.is_empty:
                    continue
                result = self._matcher.find_entry(student, snap.entries)
                if result is None or not result.candidate.record.is_recorded:
                    continue
                taken += 1
                attended += result.candidate.record.status.is_attending
            rows.append(
                {
                    "student_id": student.id,
                    "student_name": student.full_name,
                    "present_subjects": attended,
                    "total_subjects": taken,
                    "attendance_rate": rate_percent(attended, taken),
                }
            )
        return rows

    def student_week(self, student: Student, subjects: Sequence[Subject], history: History, week_start: date) -> list[dict]:
        week: list[dict] = []
        for day in week_dates(week_start):
            day_data = history.get(day) or {}
            statuses = []
            for subject in subjects:
                snap = snapshot_for(subject.name, day_data)
                result = self._matcher.find_entry(student, snap.entries) if snap else None
                record = result.candidate.record if result else None
                statuses.append(
                    {
                        "subject": subject.name,
                        "code": subject.code,
                        "color": subject.color,
                        "status": record.status.value if record and record.is_recorded else "not-taken",
                        "notes": record.notes if record else "",
                        "has_flag": record.has_behavior_issue if record else False,
                    }
                )
            week.append({"date": day.isoformat(), "day_name": day.strftime("%a"), "day_number": day.day, "subjects": statuses})
        return week

    def export_csv(self, students: Sequence[Student], subjects: Sequence[Subject], day_data: DayData) -> str:
        """One row per student with a status and notes column per subject."""

        buf = io.StringIO()
        writer = csv.writer(buf)
        header = ["Student Name"]
        for subject in subjects:
            header += [f"{subject.name} Status", f"{subject.name} Notes"]
        writer.writerow(header)

        for student in students:
            row = [student.full_name]
            for subject in subjects:
                snap = snapshot_for(subject.name, day_data)
                result = self._matcher.find_entry(student, snap.entries) if snap else None
                record = result.candidate.record if result else None
                if record and record.is_recorded:
                    row += [record.status.value, record.notes]
                else:
                    row += ["Not Taken", ""]
            writer.writerow(row)
        return buf.getvalue()

    def export_summary_csv(self, subjects: Sequence[Subject], day_data: DayData) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(["Subject", "Present", "Absent", "Late", "Excused", "Total", "Attendance Rate", "Status"])
        for row in self.daily_summary(subjects, day_data):
            writer.writerow(
                [
                    row["subject"],
                    row["present_count"],
                    row["absent_count"],
                    row["late_count"],
                    row["excused_count"],
                    row["total_taken"],
                    f"{row['attendance_rate']}%",
                    row["status"],
                ]
            )
        return buf.getvalue()
