import csv
import io
from datetime import date

import pytest

from src.school_attendance.school_attendance.attendance.normalizer import snapshot_from_document
from src.school_attendance.school_attendance.core.enums import CellType
from src.school_attendance.school_attendance.reports.calculator.base import StatusCounts
from src.school_attendance.school_attendance.reports.calculator.standard_calculator import StandardRateCalculator
from src.school_attendance.school_attendance.reports.service import AttendanceReportService
from src.school_attendance.school_attendance.schedules.model import Subject
from src.school_attendance.school_attendance.students.model import Student

HOMEROOM = Subject(id="hr", name="Homeroom", code="HR")
MATH = Subject(id="math", name="Math", code="MA", color="#3366ff")
MUSIC = Subject(id="music", name="Music", code="MU")

ANN = Student(id="S1", first_name="Ann", last_name="Lee", subjects=("Math", "Music"))
BO = Student(id="S2", first_name="Bo", last_name="Chan", subjects=("Math",))
CY = Student(id="S3", first_name="Cy", last_name="Diaz", subjects=("Math",))


def _snap(subject, rows, **extra):
    return snapshot_from_document({"subject": subject, "students": rows, **extra})


def _day():
    return {
        "Homeroom": _snap(
            "Homeroom",
            [
                {"studentId": "S1", "studentName": "Ann Lee", "status": "present"},
                {"studentId": "S2", "studentName": "Bo Chan", "status": "late"},
                {"studentId": "S3", "studentName": "Cy Diaz", "status": "absent"},
            ],
        ),
        "Math": _snap(
            "Math",
            [
                {"studentId": "S1", "studentName": "Ann Lee", "status": "absent", "notes": "dentist"},
                {"studentId": "S2", "studentName": "Bo Chan", "status": "present", "hasFlag": True},
                {"studentId": "S3", "studentName": "Cy Diaz", "status": "excused"},
            ],
            takenBy="Ms. Park",
            time="09:10",
        ),
    }


def test_rate_calculator():
    calc = StandardRateCalculator()

    assert calc.attendance_rate(StatusCounts()) == 0
    assert calc.attendance_rate(StatusCounts(present=1, late=1, absent=1)) == 67
    assert calc.attendance_rate(StatusCounts(present=3)) == 100


def test_daily_summary_counts_and_status():
    rows = AttendanceReportService().daily_summary([HOMEROOM, MATH, MUSIC], _day())
    math = rows[1]

    assert (math["present_count"], math["absent_count"], math["late_count"], math["excused_count"]) == (1, 1, 0, 1)
    assert math["total_taken"] == 3
    assert math["attendance_rate"] == 33
    assert math["status"] == "taken"
    assert math["taken_by"] == "Ms. Park"
    assert rows[2]["status"] == "not-taken"
    assert rows[2]["attendance_rate"] == 0


@pytest.mark.parametrize(
    "statuses",
    [[], ["present"], ["absent", "absent"], ["late", "excused", "present", "absent"], ["excused"]],
)
def test_daily_summary_rate_bounds_and_taken_iff_nonzero(statuses):
    day = {"Math": _snap("Math", [{"studentId": f"S{i}", "status": s} for i, s in enumerate(statuses)])}

    row = AttendanceReportService().daily_summary([MATH], day)[0]

    assert 0 <= row["attendance_rate"] <= 100
    assert (row["status"] == "not-taken") == (row["total_taken"] == 0)


def test_weekly_summary_has_seven_days():
    start = date(2024, 9, 9)
    history = {date(2024, 9, 10): _day()}

    week = AttendanceReportService().weekly_summary([HOMEROOM, MATH], history, start)

    assert len(week) == 7
    assert week[0]["day_name"] == "Mon"
    assert week[1]["day_number"] == 10
    assert week[1]["subjects"][1]["status"] == "taken"
    assert week[0]["subjects"][1]["status"] == "not-taken"


def test_overall_summary_counts_homeroom_only():
    summary = AttendanceReportService().overall_summary([ANN, BO, CY], [HOMEROOM, MATH, MUSIC], _day())

    assert (summary.present, summary.late, summary.absent, summary.excused) == (1, 1, 1, 0)
    assert summary.pending == 1
    assert summary.total == 3
    assert summary.homeroom_taken is True


def test_overall_summary_without_homeroom_snapshot():
    day = {"Math": _day()["Math"]}

    summary = AttendanceReportService().overall_summary([ANN, BO], [HOMEROOM, MATH, MUSIC], day)

    assert summary.present == 0
    assert summary.not_recorded == 2
    assert summary.pending == 2


def test_cell_pending_when_subject_has_no_snapshot():
    cell = AttendanceReportService().attendance_cell(ANN, MUSIC, _day())

    assert cell.type == CellType.PENDING


def test_cell_pending_when_snapshot_is_empty():
    day = {"Music": _snap("Music", [])}

    assert AttendanceReportService().attendance_cell(ANN, MUSIC, day).type == CellType.PENDING


def test_cell_not_enrolled():
    cell = AttendanceReportService().attendance_cell(BO, MUSIC, _day())

    assert cell.type == CellType.NOT_ENROLLED
    assert cell.display == ""


def test_cell_taken_with_flags_and_notes():
    service = AttendanceReportService()

    ann = service.attendance_cell(ANN, MATH, _day())
    bo = service.attendance_cell(BO, MATH, _day())

    assert ann.type == CellType.TAKEN
    assert ann.display == "❌📝"
    assert ann.tooltip == "Absent - dentist"
    assert bo.has_behavior_flag is True
    assert bo.display == "✅🚩"
    assert bo.to_dict()["confidence"] == "exact"


def test_homeroom_cell_for_every_student():
    cell = AttendanceReportService().attendance_cell(CY, HOMEROOM, _day())

    assert cell.type == CellType.TAKEN
    assert cell.record.status.value == "absent"


def test_student_stats():
    stats = AttendanceReportService().student_stats([ANN, BO], [HOMEROOM, MATH, MUSIC], _day())

    assert stats[0] == {
        "student_id": "S1",
        "student_name": "Ann Lee",
        "present_subjects": 1,
        "total_subjects": 2,
        "attendance_rate": 50,
    }
    assert stats[1]["attendance_rate"] == 100


def test_student_week():
    week = AttendanceReportService().student_week(BO, [MATH], {date(2024, 9, 10): _day()}, date(2024, 9, 9))

    assert week[0]["subjects"][0]["status"] == "not-taken"
    assert week[1]["subjects"][0] == {
        "subject": "Math",
        "code": "MA",
        "color": "#3366ff",
        "status": "present",
        "notes": "",
        "has_flag": True,
    }


def test_export_csv():
    body = AttendanceReportService().export_csv([ANN, BO], [MATH, MUSIC], _day())
    rows = list(csv.reader(io.StringIO(body)))

    assert rows[0] == ["Student Name", "Math Status", "Math Notes", "Music Status", "Music Notes"]
    assert rows[1] == ["Ann Lee", "absent", "dentist", "Not Taken", ""]
    assert rows[2][:2] == ["Bo Chan", "present"]


def test_export_summary_csv():
    body = AttendanceReportService().export_summary_csv([MATH], _day())
    rows = list(csv.reader(io.StringIO(body)))

    assert rows[1] == ["Math", "1", "1", "0", "1", "3", "33%", "taken"]


def test_daily_rate_rounds_halves_up():
    rows = [{"studentId": "S0", "status": "present"}] + [{"studentId": f"S{i}", "status": "absent"} for i in range(1, 8)]

    [row] = AttendanceReportService().daily_summary([MATH], {"Math": _snap("Math", rows)})

    assert row["attendance_rate"] == 13


def test_homeroom_not_taken_counts_as_pending():
    summary = AttendanceReportService().overall_summary([ANN], [HOMEROOM], {})

    assert summary.pending == 1
    assert summary.homeroom_taken is False
    assert summary.not_recorded == 1
