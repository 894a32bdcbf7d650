from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.constants import COLLECTION_USERS
from ..core.enums import Role
from .connection import DBConfig
from .mysql_base import dump_json


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        use_pure=True,
        connection_timeout=target.connect_timeout,
    )
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split schema.sql on statement-ending semicolons, skipping `--` comments."""

    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    for stmt in "\n".join(lines).split(";\n"):
        stmt = stmt.strip().rstrip(";").strip()
        if stmt:
            yield stmt


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_admin_user(db_config: dict, *, email: str, password: str, name: str = "Administrator") -> str:
    """Create the first admin account if no user with that email exists."""

    email = email.strip().lower()

    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute(
            """
            SELECT doc_id FROM documents
            WHERE collection=%s AND JSON_UNQUOTE(JSON_EXTRACT(body, '$.email'))=%s
            """,
            (COLLECTION_USERS, email),
        )
        existing = cur.fetchone()
        if existing:
            return str(existing["doc_id"])

        doc_id = uuid.uuid4().hex
        body = {
            "name": name,
            "email": email,
            "role": Role.ADMIN.value,
            "subjects": [],
            "isActive": True,
            "passwordHash": generate_password_hash(password),
        }
        cur.execute(
            "INSERT INTO documents (collection, doc_id, body) VALUES (%s, %s, %s)",
            (COLLECTION_USERS, doc_id, dump_json(body)),
        )
        conn.commit()
        return doc_id
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_mapping(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
