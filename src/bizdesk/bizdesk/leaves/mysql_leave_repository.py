from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone
from .model import Leave
from .repository import LeaveRepository

_SELECT = """
    SELECT leave_id, user_id, user_name, company_id, leave_type, start_date, end_date, duration, reason,
           status, approved_by, approved_by_name, approved_at, remarks, created_at, updated_at
    FROM leaves
"""


def _row_to_leave(row: dict) -> Leave:
    return Leave(
        leave_id=int(row["leave_id"]),
        user_id=int(row["user_id"]),
        user_name=row["user_name"],
        company_id=row.get("company_id"),
        leave_type=LeaveType(row["leave_type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        duration=float(row["duration"]),
        reason=row["reason"],
        status=LeaveStatus(row["status"]),
        approved_by=row.get("approved_by"),
        approved_by_name=row.get("approved_by_name"),
        approved_at=row.get("approved_at"),
        remarks=row.get("remarks"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE leave_id=%s", (leave_id,))
            row = fetchone(cur)
            return _row_to_leave(row) if row else None

    def create(self, leave: Leave) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leaves(user_id, user_name, company_id, leave_type, start_date, end_date,
                                   duration, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    leave.user_id,
                    leave.user_name,
                    leave.company_id,
                    leave.leave_type.value,
                    leave.start_date,
                    leave.end_date,
                    leave.duration,
                    leave.reason,
                    leave.status.value,
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, leave_id: int, fields: dict[str, Any]) -> bool:
        if not fields:
            return False
        set_clause, params = build_update(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE leaves SET {set_clause} WHERE leave_id=%s", (*params, leave_id))
            return cur.rowcount > 0

    def list_leaves(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        where: list[str] = []
        params: list[Any] = []
        if user_id is not None:
            where.append("user_id=%s")
            params.append(int(user_id))
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        sql = _SELECT
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY created_at DESC, leave_id DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_starting_between(
        self, start: date, end: date, *, user_id: Optional[int] = None
    ) -> Sequence[Leave]:
        sql = _SELECT + " WHERE start_date BETWEEN %s AND %s"
        params: list[Any] = [start, end]
        if user_id is not None:
            sql += " AND user_id=%s"
            params.append(int(user_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY start_date", tuple(params))
            return [_row_to_leave(r) for r in fetchall(cur)]
