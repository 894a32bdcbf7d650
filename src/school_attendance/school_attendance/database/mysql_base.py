from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def dump_json(data: Dict[str, Any]) -> str:
    # Dates and datetimes inside documents are stored as ISO strings.
    return json.dumps(data, default=lambda value: value.isoformat() if hasattr(value, "isoformat") else str(value))


def load_json(value: Any) -> Dict[str, Any]:
    """Normalize JSON column values across connector implementations.

    mysql-connector can return JSON as:
    - str
    - bytes / bytearray
    - already-decoded dict
    """

    if value is None:
        return {}

    if isinstance(value, dict):
        return dict(value)

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")

    if isinstance(value, str):
        decoded = json.loads(value) if value.strip() else {}
        if not isinstance(decoded, dict):
            raise ValueError(f"Document body is not an object: {value[:40]!r}")
        return decoded

    raise TypeError(f"Unsupported JSON column value type: {type(value)!r}")
