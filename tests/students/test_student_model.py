from src.school_attendance.school_attendance.students.model import Section, Student, normalize_subject_name


def test_from_document_reads_legacy_fields():
    student = Student.from_document(
        {
            "firstName": "Ann",
            "lastName": "Lee",
            "studentId": 1001,
            "year": "7",
            "sectionName": "7-A",
            "sectionId": "sec-a",
            "selectedSubjects": ["subj-music", ""],
        },
        "doc-1",
    )

    assert student.id == "doc-1"
    assert student.student_id == "1001"
    assert student.grade_level == 7
    assert student.section == "7-A"
    assert student.selected_subjects == ("subj-music",)
    assert student.reversed_name == "Lee, Ann"


def test_subject_names_are_normalized():
    assert normalize_subject_name("  Physical   Education ") == "physical education"


def test_enrollment_sources():
    by_id = {"subj-music": "Music"}

    assert Student(id="1", first_name="A", last_name="B", subject_enrollments=({"subjectName": "Math"},)).is_enrolled_in("math")
    assert Student(id="1", first_name="A", last_name="B", selected_subjects=("subj-music",)).is_enrolled_in("Music", by_id)
    assert Student(id="1", first_name="A", last_name="B", selected_subjects=("Music",)).is_enrolled_in("music")
    assert Student(id="1", first_name="A", last_name="B", subjects=("Art ",)).is_enrolled_in("art")
    assert Student(id="1", first_name="A", last_name="B", subject="Science").is_enrolled_in("Science")
    assert not Student(id="1", first_name="A", last_name="B").is_enrolled_in("Science")


def test_everyone_is_enrolled_in_homeroom():
    assert Student(id="1", first_name="A", last_name="B").is_enrolled_in("Homeroom")


def test_section_display_name():
    assert Section.from_document({"name": "7 Maple"}, "s1").display_name == "7 Maple"
    assert Section.from_document({"gradeLevel": 8, "sectionName": "B"}, "s2").display_name == "Grade 8-B"
