import pytest

from src.school_attendance.school_attendance.attendance.factory import MatchStrategyFactory
from src.school_attendance.school_attendance.attendance.matcher import StudentMatcher
from src.school_attendance.school_attendance.core.enums import MatchConfidence
from src.school_attendance.school_attendance.core.exceptions import MatchAmbiguous
from src.school_attendance.school_attendance.students.model import Student

ANN = Student(id="doc-ann", first_name="Ann", last_name="Lee", student_id="S1")


def test_default_strategy_order():
    assert StudentMatcher().strategy_names == [
        "exact-name",
        "student-id",
        "reversed-name",
        "case-insensitive-name",
        "first-name-substring",
        "alternate-id",
    ]


def test_exact_name_beats_substring():
    substring_row = {"studentName": "Annabel Ng", "status": "absent"}
    exact_row = {"studentName": "Ann Lee", "status": "present"}

    result = StudentMatcher().find(ANN, [substring_row, exact_row])

    assert result.candidate is exact_row
    assert result.strategy == "exact-name"
    assert result.confidence == MatchConfidence.EXACT
    assert result.ambiguous is False


@pytest.mark.parametrize(
    "row,strategy",
    [
        ({"studentId": "doc-ann"}, "student-id"),
        ({"studentId": "S1"}, "student-id"),
        ({"studentName": "Lee, Ann"}, "reversed-name"),
        ({"studentName": "ann LEE"}, "case-insensitive-name"),
        ({"studentName": "Ann L."}, "first-name-substring"),
        ({"studentNumber": "S1"}, "alternate-id"),
        ({"student_id": "doc-ann"}, "alternate-id"),
    ],
)
def test_each_strategy_matches(row, strategy):
    result = StudentMatcher().find(ANN, [row])

    assert result is not None
    assert result.strategy == strategy


def test_substring_match_is_weak():
    result = StudentMatcher().find(ANN, [{"studentName": "Ann-Marie Lee"}])

    assert result.confidence == MatchConfidence.WEAK


def test_no_match_returns_none():
    assert StudentMatcher().find(ANN, [{"studentName": "Bo Chan", "studentId": "S2"}]) is None


def test_several_hits_are_reported():
    rows = [{"studentName": "Ann Lee", "status": "present"}, {"studentName": "Ann Lee", "status": "absent"}]

    result = StudentMatcher().find(ANN, rows)

    assert result.candidate is rows[0]
    assert result.candidates == 2
    assert result.ambiguous is True


def test_find_strict_raises_on_ambiguity():
    rows = [{"studentName": "Ann Lee"}, {"studentName": "Ann Lee"}]

    with pytest.raises(MatchAmbiguous) as exc:
        StudentMatcher().find_strict(ANN, rows)

    assert exc.value.candidates == 2
    assert exc.value.strategy == "exact-name"


def test_substring_can_be_disabled():
    matcher = StudentMatcher(MatchStrategyFactory(allow_substring=False).ordered())

    assert "first-name-substring" not in matcher.strategy_names
    assert matcher.find(ANN, [{"studentName": "Ann L."}]) is None


def test_baseline_strategies_are_exact_only():
    matcher = StudentMatcher(MatchStrategyFactory().for_baseline())

    assert matcher.find(ANN, [{"studentName": "Lee, Ann"}]) is None
    assert matcher.find(ANN, [{"studentId": "S1"}]) is not None
