from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.school_attendance.school_attendance.database.bootstrap import apply_schema, ensure_admin_user, list_tables


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )

    email = os.getenv("ADMIN_EMAIL") or getattr(settings, "ADMIN_EMAIL", None)
    password = os.getenv("ADMIN_PASSWORD") or getattr(settings, "ADMIN_PASSWORD", None)
    if email and password:
        user_id = ensure_admin_user(db_config, email=email, password=password)
        print(f"OK: Admin account {email} (id={user_id})")


if __name__ == "__main__":
    main()
