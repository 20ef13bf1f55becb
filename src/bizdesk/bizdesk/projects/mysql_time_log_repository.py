from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import WorkType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone
from .model import TimeLog
from .repository import TimeLogRepository

_SELECT = """
    SELECT time_log_id, project_id, user_id, work_type, hours, work_date, description, created_at, updated_at
    FROM time_logs
"""

_ORDER = " ORDER BY work_date DESC, time_log_id DESC"


def _row_to_log(row: dict) -> TimeLog:
    return TimeLog(
        time_log_id=int(row["time_log_id"]),
        project_id=int(row["project_id"]),
        user_id=int(row["user_id"]),
        work_type=WorkType(row["work_type"]),
        hours=float(row["hours"]),
        work_date=row["work_date"],
        description=row.get("description") or "",
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLTimeLogRepository(TimeLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _query(self, where: str = "", params: tuple = (), limit: Optional[int] = None) -> list[TimeLog]:
        sql = _SELECT + where + _ORDER
        if limit:
            sql += " LIMIT %s"
            params = (*params, int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_log(r) for r in fetchall(cur)]

    def get_by_id(self, time_log_id: int) -> Optional[TimeLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE time_log_id=%s", (time_log_id,))
            row = fetchone(cur)
            return _row_to_log(row) if row else None

    def create(self, log: TimeLog) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_logs(project_id, user_id, work_type, hours, work_date, description)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (log.project_id, log.user_id, log.work_type.value, log.hours, log.work_date, log.description),
            )
            return int(cur.lastrowid)

    def update_fields(self, time_log_id: int, fields: dict[str, Any]) -> bool:
        if not fields:
            return False
        set_clause, params = build_update(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE time_logs SET {set_clause} WHERE time_log_id=%s", (*params, time_log_id))
            return cur.rowcount > 0

    def delete_by_id(self, time_log_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_logs WHERE time_log_id=%s", (time_log_id,))
            return cur.rowcount > 0

    def list_for_project(self, project_id: int) -> Sequence[TimeLog]:
        return self._query(" WHERE project_id=%s", (project_id,))

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[TimeLog]:
        return self._query(" WHERE user_id=%s", (user_id,), limit=limit)

    def list_between(
        self, start: date, end: date, *, project_id: Optional[int] = None
    ) -> Sequence[TimeLog]:
        if project_id is not None:
            return self._query(
                " WHERE work_date BETWEEN %s AND %s AND project_id=%s", (start, end, project_id)
            )
        return self._query(" WHERE work_date BETWEEN %s AND %s", (start, end))

    def list_all(self) -> Sequence[TimeLog]:
        return self._query()

    def sum_hours_for_project(self, project_id: int) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(SUM(hours), 0) AS total FROM time_logs WHERE project_id=%s", (project_id,))
            row = fetchone(cur)
            return float(row["total"]) if row else 0.0
