from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import Department, Role, UserPosition
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone, from_json, to_json
from .model import NewUser, User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, name, password_hash, role, position, department, phone, company_id,
    hourly_rate, monthly_salary, is_active, profile_picture_url, profile_picture_path,
    date_of_birth, leave_allocation, created_at, updated_at, last_login_at, deleted_at
"""

_JSON_FIELDS = frozenset({"leave_allocation"})


def _enum_or_none(enum_cls, value):
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        name=row["name"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        position=_enum_or_none(UserPosition, row.get("position")),
        department=_enum_or_none(Department, row.get("department")),
        phone=row.get("phone") or "",
        company_id=row.get("company_id"),
        hourly_rate=float(row.get("hourly_rate") or 0),
        monthly_salary=float(row.get("monthly_salary") or 0),
        is_active=bool(row.get("is_active", True)),
        profile_picture_url=row.get("profile_picture_url"),
        profile_picture_path=row.get("profile_picture_path"),
        date_of_birth=row.get("date_of_birth"),
        leave_allocation=from_json(row.get("leave_allocation")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        last_login_at=row.get("last_login_at"),
        deleted_at=row.get("deleted_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create(self, user: NewUser) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(
                    email, name, password_hash, role, position, department, phone, company_id,
                    hourly_rate, monthly_salary, date_of_birth, leave_allocation, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    user.email,
                    user.name,
                    user.password_hash,
                    user.role.value,
                    user.position.value if user.position else None,
                    user.department.value if user.department else None,
                    user.phone,
                    user.company_id,
                    user.hourly_rate,
                    user.monthly_salary,
                    user.date_of_birth,
                    to_json(user.leave_allocation),
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, user_id: int, fields: dict[str, Any]) -> bool:
        if not fields:
            return False
        set_clause, params = build_update(fields, json_fields=_JSON_FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {set_clause} WHERE user_id=%s", (*params, user_id))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC, user_id DESC")
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_active(self, *, role: Optional[Role] = None) -> Sequence[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE is_active=1"
        params: list[Any] = []
        if role is not None:
            sql += " AND role=%s"
            params.append(role.value)
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_company_ids(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT company_id FROM users WHERE company_id IS NOT NULL AND company_id <> ''")
            return [r["company_id"] for r in fetchall(cur)]

    def list_without_company_id(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE company_id IS NULL OR company_id = '' "
                "ORDER BY created_at, user_id"
            )
            return [_row_to_user(r) for r in fetchall(cur)]

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login_at=%s WHERE user_id=%s", (at, user_id))
