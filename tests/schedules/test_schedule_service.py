from datetime import date

from src.school_attendance.school_attendance.core.enums import WeekParity
from src.school_attendance.school_attendance.schedules.model import SchoolCalendar, ScheduleSlot, Subject
from src.school_attendance.school_attendance.schedules.service import ScheduleService
from src.school_attendance.school_attendance.students.model import Student

START = date(2024, 9, 2)  # Monday

HOMEROOM = Subject(id="hr", name="Homeroom", code="HR")
MATH = Subject(
    id="math",
    name="Math",
    code="MA",
    schedule={WeekParity.WEEK1: (ScheduleSlot(day="monday", period=1, time="8:00-8:45"),)},
)
ART = Subject(
    id="art",
    name="Art",
    schedule={WeekParity.WEEK2: (ScheduleSlot(day="Wednesday", period=3, time="10:00-10:45"),)},
)


def _service() -> ScheduleService:
    return ScheduleService(SchoolCalendar(START))


def test_week_parity_counts_whole_weeks_from_anchor():
    calendar = SchoolCalendar(START)

    assert calendar.week_parity(date(2024, 9, 2)) == WeekParity.WEEK1
    assert calendar.week_parity(date(2024, 9, 8)) == WeekParity.WEEK1
    assert calendar.week_parity(date(2024, 9, 9)) == WeekParity.WEEK2
    assert calendar.week_parity(date(2024, 9, 16)) == WeekParity.WEEK1


def test_anchor_is_configurable():
    shifted = SchoolCalendar(date(2024, 9, 9))

    assert shifted.week_parity(date(2024, 9, 9)) == WeekParity.WEEK1


def test_math_on_week1_monday():
    subjects = _service().scheduled_subjects([MATH, HOMEROOM, ART], date(2024, 9, 2))

    assert [s.name for s in subjects] == ["Homeroom", "Math"]


def test_math_not_on_week2_monday():
    subjects = _service().scheduled_subjects([MATH, HOMEROOM, ART], date(2024, 9, 9))

    assert [s.name for s in subjects] == ["Homeroom"]


def test_day_match_is_case_insensitive():
    subjects = _service().scheduled_subjects([HOMEROOM, ART], date(2024, 9, 11))

    assert [s.name for s in subjects] == ["Homeroom", "Art"]


def test_no_homeroom_and_nothing_scheduled_is_empty():
    assert _service().scheduled_subjects([MATH, ART], date(2024, 9, 7)) == []


def test_homeroom_detected_by_code():
    hr = Subject(id="x", name="Form Period", code="HR")

    assert _service().scheduled_subjects([MATH, hr], date(2024, 9, 4)) == [hr]


def test_subject_from_document_reads_both_weeks():
    subject = Subject.from_document(
        {
            "name": "Science",
            "schedule": {
                "week1": [{"day": "tuesday", "period": "2", "time": "9:00-9:45"}],
                "week2": [{"day": "thursday", "period": 4}],
            },
        },
        "sci",
    )

    assert subject.id == "sci"
    assert subject.slots(WeekParity.WEEK1)[0].period == 2
    assert subject.slots(WeekParity.WEEK2)[0].day == "thursday"


def test_subjects_for_week_groups_by_school_day():
    week = _service().subjects_for_week([HOMEROOM, MATH, ART], WeekParity.WEEK1)

    assert week["week"] == WeekParity.WEEK1
    assert [s.name for s in week["schedule"]["monday"]] == ["Homeroom", "Math"]
    assert [s.name for s in week["schedule"]["wednesday"]] == ["Homeroom"]
    assert week["total_subjects"] == 2


def test_schedule_info_and_display():
    service = _service()
    info = service.schedule_info(date(2024, 9, 9))

    assert info.week == WeekParity.WEEK2
    assert info.day == "monday"
    assert info.display_text == "Week2, Monday"
    assert service.week_display_text(WeekParity.WEEK1) == "Week 1"
    assert service.format_schedule_display(service.slots_on(MATH, date(2024, 9, 2))) == "8:00-8:45"


def test_subjects_for_grade_uses_enrollments():
    students = [
        Student(id="S1", first_name="Ann", last_name="Lee", subjects=("math",)),
        Student(id="S2", first_name="Bo", last_name="Chan", selected_subjects=("math",)),
    ]

    subjects = ScheduleService.subjects_for_grade([HOMEROOM, MATH, ART], students, {"math": "Math"})

    assert [s.name for s in subjects] == ["Homeroom", "Math"]
