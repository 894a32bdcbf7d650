import pytest

from src.school_attendance.school_attendance.attendance.model import AttendanceRecord
from src.school_attendance.school_attendance.core.enums import AttendanceStatus
from src.school_attendance.school_attendance.reports.calculator.base import StatusCounts, rate_percent
from src.school_attendance.school_attendance.reports.calculator.standard_calculator import StandardRateCalculator


def test_late_counts_as_attending():
    counts = StatusCounts(present=2, absent=1, late=1, excused=0)

    assert StandardRateCalculator().attendance_rate(counts) == 75


def test_excused_lowers_the_rate():
    counts = StatusCounts(present=1, excused=2)

    assert StandardRateCalculator().attendance_rate(counts) == 33


def test_nothing_taken_is_zero():
    assert StandardRateCalculator().attendance_rate(StatusCounts()) == 0


def test_counts_skip_rows_without_status():
    counts = StatusCounts.from_records(
        [
            AttendanceRecord(status=AttendanceStatus.PRESENT),
            AttendanceRecord(status=AttendanceStatus.LATE),
            AttendanceRecord(status=AttendanceStatus.NOT_RECORDED),
        ]
    )

    assert counts.total == 2
    assert counts.attending == 2


@pytest.mark.parametrize(
    "part, whole, expected",
    [(1, 8, 13), (3, 8, 38), (5, 8, 63), (1, 200, 1), (1, 3, 33), (2, 3, 67), (0, 0, 0)],
)
def test_rate_rounds_halves_up(part, whole, expected):
    assert rate_percent(part, whole) == expected


def test_one_of_eight_attending_is_thirteen_percent():
    assert StandardRateCalculator().attendance_rate(StatusCounts(present=1, absent=7)) == 13
