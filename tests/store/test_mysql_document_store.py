from __future__ import annotations

import json

import pytest

from src.school_attendance.school_attendance.core.exceptions import PersistenceError, ValidationError
from src.school_attendance.school_attendance.store.mysql_document_store import MySQLDocumentStore


class FakeCursor:
    """Understands just the statements MySQLDocumentStore issues."""

    def __init__(self, table: dict):
        self._table = table
        self._rows: list[dict] = []
        self.rowcount = 0

    def execute(self, sql, params=()):
        statement = " ".join(sql.split())
        if statement.startswith("SELECT doc_id, body FROM documents WHERE collection=%s AND doc_id=%s"):
            key = (params[0], params[1])
            self._rows = [{"doc_id": key[1], "body": self._table[key]}] if key in self._table else []
        elif statement.startswith("SELECT doc_id, body FROM documents WHERE collection=%s"):
            self._rows = [{"doc_id": k[1], "body": v} for k, v in self._table.items() if k[0] == params[0]]
        elif statement.startswith("INSERT INTO documents"):
            self._table[(params[0], params[1])] = params[2]
            self.rowcount = 1
        elif statement.startswith("UPDATE documents"):
            key = (params[1], params[2])
            self.rowcount = int(key in self._table)
            if key in self._table:
                self._table[key] = params[0]
        elif statement.startswith("DELETE FROM documents"):
            key = (params[0], params[1])
            self.rowcount = int(self._table.pop(key, None) is not None)
        else:
            raise AssertionError(f"unexpected SQL: {statement}")

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, table):
        self._table = table

    def cursor(self, dictionary=True):
        return FakeCursor(self._table)

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        pass


class FakeConnFactory:
    def __init__(self):
        self.table: dict = {}
        self.fail = False

    def connect(self):
        if self.fail:
            raise OSError("connection refused")
        return FakeConnection(self.table)


def test_create_get_update_delete_roundtrip():
    factory = FakeConnFactory()
    store = MySQLDocumentStore(factory)

    doc_id = store.create("students", {"firstName": "Ann", "sectionId": "sec-a"})
    store.update("students", doc_id, {"sectionId": "sec-b"})

    assert store.get("students", doc_id) == {"id": doc_id, "firstName": "Ann", "sectionId": "sec-b"}
    assert json.loads(factory.table[("students", doc_id)]) == {"firstName": "Ann", "sectionId": "sec-b"}
    assert store.delete("students", doc_id) is True
    assert store.get("students", doc_id) is None


def test_update_missing_document_returns_false():
    assert MySQLDocumentStore(FakeConnFactory()).update("students", "nope", {"a": 1}) is False


def test_query_filters_on_every_field():
    store = MySQLDocumentStore(FakeConnFactory())
    store.create("attendance", {"date": "2024-09-10", "sectionId": "sec-a", "isHomeroom": True}, doc_id="a")
    store.create("attendance", {"date": "2024-09-10", "sectionId": "sec-b", "isHomeroom": True}, doc_id="b")

    assert [d["id"] for d in store.query("attendance", date="2024-09-10", sectionId="sec-b")] == ["b"]


def test_writes_are_published_to_subscribers():
    store = MySQLDocumentStore(FakeConnFactory())
    snapshots = []

    store.subscribe("sections", lambda docs: snapshots.append([d["id"] for d in docs]))
    store.create("sections", {"name": "7 Maple"}, doc_id="s1")

    assert snapshots == [[], ["s1"]]


def test_driver_errors_become_persistence_errors():
    factory = FakeConnFactory()
    factory.fail = True

    with pytest.raises(PersistenceError):
        MySQLDocumentStore(factory).list_documents("students")


def test_create_user_rejects_duplicate_email():
    store = MySQLDocumentStore(FakeConnFactory())
    store.create_user(email="t@school.test", password_hash="h", profile={"name": "T"})

    with pytest.raises(ValidationError):
        store.create_user(email="t@school.test", password_hash="h2", profile={"name": "T2"})


def test_password_reset_records_token():
    store = MySQLDocumentStore(FakeConnFactory())

    token = store.send_password_reset(email="t@school.test")

    [reset] = store.query("password_resets", token=token)
    assert reset["email"] == "t@school.test"
    assert reset["expiresAt"] > reset["createdAt"]
