import pytest

from src.school_attendance.school_attendance.attendance.flags import (
    BEHAVIOR_FLAG_ALIASES,
    MERIT_FLAG_ALIASES,
    behavior_mirrors,
    check_behavior_flag,
    check_merit_flag,
)


def test_disruptive_note_without_flag_field_raises_behavior_flag():
    raw = {"studentName": "Ann Lee", "status": "present", "notes": "Student was disruptive today"}

    assert check_behavior_flag(raw) is True


@pytest.mark.parametrize("alias", BEHAVIOR_FLAG_ALIASES)
def test_every_behavior_alias_is_recognized(alias):
    assert check_behavior_flag({alias: True}) is True


@pytest.mark.parametrize("alias", MERIT_FLAG_ALIASES)
def test_every_merit_alias_is_recognized(alias):
    assert check_merit_flag({alias: "true"}) is True


def test_flag_values_accept_true_string_and_one_only():
    assert check_behavior_flag({"flagged": 1}) is True
    assert check_behavior_flag({"flagged": "TRUE"}) is True
    assert check_behavior_flag({"flagged": "yes"}) is False
    assert check_behavior_flag({"flagged": 0}) is False
    assert check_behavior_flag({"flagged": False}) is False


def test_negated_note_still_flags():
    # Documented limitation: the keyword scan has no negation handling.
    assert check_behavior_flag({"notes": "Not disruptive today"}) is True


def test_notes_scan_can_be_disabled():
    assert check_behavior_flag({"notes": "disruptive"}, scan_notes=False) is False


def test_merit_keywords_in_notes():
    assert check_merit_flag({"notes": "Outstanding project work"}) is True
    assert check_merit_flag({"notes": "Quiet day"}) is False


def test_behavior_mirrors_follow_canonical_flag():
    assert behavior_mirrors(True) == {"hasFlag": True, "behaviorFlag": True, "flagged": True}
    assert set(behavior_mirrors(False).values()) == {False}
