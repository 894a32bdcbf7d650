from __future__ import annotations

import logging
import secrets
import uuid
from datetime import timedelta
from typing import Any, Optional, Sequence

from ..common.datetime_utils import iso_timestamp, now_local
from ..core.constants import COLLECTION_PASSWORD_RESETS, COLLECTION_USERS
from ..core.exceptions import PersistenceError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .listeners import ListenerRegistry
from .repository import Document, DocumentStore, Listener, Unsubscribe

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(hours=1)


class MySQLDocumentStore(DocumentStore):
    """Document store kept in a single `documents` table (collection, doc_id, JSON body).

    Listeners registered through `subscribe` are notified in-process after each
    write, which is enough for a single Flask worker.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory
        self._listeners = ListenerRegistry(self.list_documents)

    def _run(self, action: str, fn):
        try:
            return fn()
        except (ValidationError, PersistenceError):
            raise
        except Exception as exc:
            logger.warning("Document store %s failed: %s", action, exc)
            raise PersistenceError(f"Document store {action} failed: {exc}") from exc

    @staticmethod
    def _to_document(row: dict) -> Document:
        body = load_json(row.get("body"))
        body["id"] = str(row["doc_id"])
        return body

    def list_documents(self, collection: str) -> Sequence[Document]:
        def _list():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT doc_id, body FROM documents WHERE collection=%s ORDER BY created_at, doc_id",
                    (collection,),
                )
                return [self._to_document(r) for r in fetchall(cur)]

        return self._run("list", _list)

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        def _get():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT doc_id, body FROM documents WHERE collection=%s AND doc_id=%s",
                    (collection, str(doc_id)),
                )
                r = fetchone(cur)
                return self._to_document(r) if r else None

        return self._run("get", _get)

    def create(self, collection: str, data: Document, *, doc_id: Optional[str] = None) -> str:
        new_id = str(doc_id or uuid.uuid4().hex)
        body = {k: v for k, v in data.items() if k != "id"}

        def _create():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO documents (collection, doc_id, body) VALUES (%s, %s, %s)",
                    (collection, new_id, dump_json(body)),
                )
            return new_id

        created = self._run("create", _create)
        self._listeners.publish(collection)
        return created

    def update(self, collection: str, doc_id: str, data: Document) -> bool:
        current = self.get(collection, doc_id)
        if current is None:
            return False
        current.update({k: v for k, v in data.items() if k != "id"})
        current.pop("id", None)

        def _update():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE documents SET body=%s WHERE collection=%s AND doc_id=%s",
                    (dump_json(current), collection, str(doc_id)),
                )
                return cur.rowcount > 0

        updated = self._run("update", _update)
        self._listeners.publish(collection)
        return updated

    def delete(self, collection: str, doc_id: str) -> bool:
        def _delete():
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM documents WHERE collection=%s AND doc_id=%s", (collection, str(doc_id)))
                return cur.rowcount > 0

        deleted = self._run("delete", _delete)
        if deleted:
            self._listeners.publish(collection)
        return deleted

    def query(self, collection: str, **equals: Any) -> Sequence[Document]:
        # Filtering happens in Python so JSON value types compare the same way as in documents.
        return [
            doc
            for doc in self.list_documents(collection)
            if all(doc.get(field) == value for field, value in equals.items())
        ]

    def subscribe(self, collection: str, listener: Listener) -> Unsubscribe:
        return self._listeners.subscribe(collection, listener)

    def create_user(self, *, email: str, password_hash: str, profile: Document) -> str:
        if self.query(COLLECTION_USERS, email=email):
            raise ValidationError(f"A user with email {email} already exists")
        data = dict(profile)
        data.update({"email": email, "passwordHash": password_hash})
        return self.create(COLLECTION_USERS, data)

    def send_password_reset(self, *, email: str) -> str:
        token = secrets.token_urlsafe(24)
        self.create(
            COLLECTION_PASSWORD_RESETS,
            {
                "email": email,
                "token": token,
                "createdAt": iso_timestamp(),
                "expiresAt": iso_timestamp(now_local() + RESET_TOKEN_TTL),
            },
        )
        logger.info("Password reset issued for %s", email)
        return token
