from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema/seed files (handles ';' inside quotes and -- comments).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for line in sql.splitlines(keepends=True):
        if not in_single and not in_double and line.lstrip().startswith("--"):
            continue
        for ch in line:
            if escape:
                buf.append(ch)
                escape = False
                continue
            if ch == "\\":
                buf.append(ch)
                escape = True
                continue
            if ch == "'" and not in_double:
                in_single = not in_single
            elif ch == '"' and not in_single:
                in_double = not in_double
            elif ch == ";" and not in_single and not in_double:
                stmt = "".join(buf).strip()
                buf.clear()
                if stmt:
                    yield stmt
                continue
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> None:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
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
    _run_script(db_config, schema_path)
    logger.info("schema applied from %s", schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    _run_script(db_config, seed_path)
    logger.info("seed applied from %s", seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset) one demo account per role for the seeded institution."""

    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT institution_id FROM institutions WHERE name=%s", ("Academia Demo",))
        row = cur.fetchone()
        if not row:
            raise RuntimeError("Missing institutions row 'Academia Demo' (run seed.sql first)")
        institution_id = int(row["institution_id"])

        cur.execute(
            "SELECT sede_id FROM sedes WHERE institution_id=%s AND name=%s",
            (institution_id, "Sede Central"),
        )
        row = cur.fetchone()
        if not row:
            raise RuntimeError("Missing sedes row 'Sede Central' (run seed.sql first)")
        sede_id = int(row["sede_id"])

        def upsert_user(name: str, username: str, password: str, role: str, user_sede_id) -> int:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, institution_id=%s, sede_id=%s, is_active=1
                    WHERE username=%s
                    """,
                    (name, password_hash, role, institution_id, user_sede_id, username),
                )
                return int(existing["user_id"])
            cur.execute(
                """
                INSERT INTO users (name, username, password_hash, role, institution_id, sede_id)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (name, username, password_hash, role, institution_id, user_sede_id),
            )
            return int(cur.lastrowid)

        upsert_user("Admin Demo", "admin", "admin123", "admin", None)
        supervisor_id = upsert_user("Supervisora Demo", "supervisor", "super123", "supervisor", sede_id)
        upsert_user("Docente Demo", "docente", "docente123", "teacher", sede_id)
        upsert_user("Caja Demo", "caja", "caja123", "caja", None)
        upsert_user("Estudiante Demo", "estudiante", "estudiante123", "student", None)

        cur.execute("UPDATE sedes SET supervisor_id=%s WHERE sede_id=%s", (supervisor_id, sede_id))
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
