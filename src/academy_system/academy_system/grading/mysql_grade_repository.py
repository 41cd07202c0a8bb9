from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from ..core.constants import GRADING_CONFIG_KEY
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import PartialScores
from .repository import GradeRepository, GradingConfigRepository


class MySQLGradeRepository(GradeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_grades(self, student_id: int) -> Dict[str, PartialScores]:
        return self.list_grades([student_id]).get(int(student_id), {})

    def list_grades(self, student_ids: Iterable[int]) -> Dict[int, Dict[str, PartialScores]]:
        where, params = in_clause("student_id", sorted({int(s) for s in student_ids}))
        out: Dict[int, Dict[str, PartialScores]] = {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT student_id, partial_key, payload FROM student_grades WHERE {where}", tuple(params))
            for row in fetchall(cur):
                out.setdefault(int(row["student_id"]), {})[row["partial_key"]] = PartialScores.from_dict(
                    load_json(row["payload"])
                )
        return out

    def save_grades(self, student_id: int, grades: Mapping[str, PartialScores]) -> None:
        rows = [(int(student_id), key, dump_json(scores.to_dict())) for key, scores in grades.items()]
        if not rows:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO student_grades(student_id, partial_key, payload) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload)
                """,
                rows,
            )


class MySQLGradingConfigRepository(GradingConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, config_key: str = GRADING_CONFIG_KEY):
        self._conn_factory = conn_factory
        self._config_key = config_key

    def get_config(self, institution_id: int) -> Optional[Dict[str, Any]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT payload FROM app_configuration WHERE institution_id=%s AND config_key=%s",
                (int(institution_id), self._config_key),
            )
            row = fetchone(cur)
            if not row:
                return None
            payload = load_json(row["payload"])
            return payload if isinstance(payload, dict) else None

    def save_config(self, institution_id: int, payload: Mapping[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO app_configuration(institution_id, config_key, payload) VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload)
                """,
                (int(institution_id), self._config_key, dump_json(dict(payload))),
            )
