from __future__ import annotations

import pytest

from src.school_attendance.school_attendance.core.exceptions import UnknownSubject
from src.school_attendance.school_attendance.students.service import RosterService


class FakeDocumentStore:
    def __init__(self, collections: dict[str, dict[str, dict]]):
        self._data = {name: dict(docs) for name, docs in collections.items()}
        self._listeners: dict[str, list] = {}

    def list_documents(self, collection):
        return [{**doc, "id": doc_id} for doc_id, doc in self._data.get(collection, {}).items()]

    def query(self, collection, **equals):
        return [d for d in self.list_documents(collection) if all(d.get(k) == v for k, v in equals.items())]

    def subscribe(self, collection, listener):
        self._listeners.setdefault(collection, []).append(listener)
        listener(self.list_documents(collection))
        return lambda: self._listeners[collection].remove(listener)

    def update(self, collection, doc_id, data):
        self._data[collection][doc_id].update(data)
        for listener in list(self._listeners.get(collection, [])):
            listener(self.list_documents(collection))
        return True


def _store() -> FakeDocumentStore:
    return FakeDocumentStore(
        {
            "subjects": {
                "subj-math": {"name": "Math"},
                "subj-music": {"name": "Music"},
                "subj-old": {"name": "Latin", "isActive": False},
            },
            "students": {
                "S1": {"firstName": "Ann", "lastName": "Lee", "sectionId": "sec-a", "selectedSubjects": ["subj-music"]},
                "S2": {"firstName": "Bo", "lastName": "Chan", "sectionId": "sec-a", "subjects": ["Math"]},
                "S3": {"firstName": "Cy", "lastName": "Diaz", "sectionId": "sec-b", "subjectEnrollments": [{"subject": "music"}]},
                "S4": {"firstName": "Di", "lastName": "Ng", "sectionId": "sec-c"},
            },
        }
    )


def test_subjects_skip_inactive():
    roster = RosterService(_store())

    assert [s.name for s in roster.subjects()] == ["Math", "Music"]
    assert roster.subject_names_by_id()["subj-old"] == "Latin"


def test_get_subject_by_id_or_name():
    roster = RosterService(_store())

    assert roster.get_subject("subj-math").name == "Math"
    assert roster.get_subject("  music ").id == "subj-music"
    with pytest.raises(UnknownSubject):
        roster.get_subject("Drama")


def test_homeroom_roster_takes_whole_section():
    students = RosterService(_store()).students_for_section("sec-a", "Homeroom", is_homeroom=True)

    assert [s.id for s in students] == ["S1", "S2"]


def test_subject_roster_spans_sections_and_resolves_subject_ids():
    students = RosterService(_store()).students_for_section(["sec-a", "sec-b"], "Music")

    assert [s.id for s in students] == ["S1", "S3"]


def test_students_listed_once_across_sections():
    students = RosterService(_store()).students_for_section(["sec-a", "sec-a"], "Homeroom", is_homeroom=True)

    assert [s.id for s in students] == ["S1", "S2"]


def test_watch_roster_pushes_updates():
    store = _store()
    pushed = []

    unsubscribe = RosterService(store).watch_roster(["sec-a"], "Math", pushed.append)
    store.update("students", "S1", {"subjects": ["Math"]})
    unsubscribe()
    store.update("students", "S2", {"sectionId": "sec-c"})

    assert [[s.id for s in roster] for roster in pushed] == [["S2"], ["S1", "S2"]]
