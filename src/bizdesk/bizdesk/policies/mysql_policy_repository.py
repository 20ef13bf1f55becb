from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import PolicyCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone
from .model import Policy
from .repository import PolicyRepository

_SELECT = """
    SELECT policy_id, title, description, category, file_name, file_size, file_url, storage_path,
           is_active, created_at, updated_at
    FROM policies
"""


def _row_to_policy(row: dict) -> Policy:
    return Policy(
        policy_id=int(row["policy_id"]),
        title=row["title"],
        description=row["description"],
        category=PolicyCategory(row["category"]),
        file_name=row.get("file_name"),
        file_size=int(row["file_size"]) if row.get("file_size") is not None else None,
        file_url=row.get("file_url"),
        storage_path=row.get("storage_path"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLPolicyRepository(PolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, policy_id: int) -> Optional[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE policy_id=%s", (policy_id,))
            row = fetchone(cur)
            return _row_to_policy(row) if row else None

    def create(self, policy: Policy) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO policies(title, description, category, file_name, file_size, file_url,
                                     storage_path, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    policy.title,
                    policy.description,
                    policy.category.value,
                    policy.file_name,
                    policy.file_size,
                    policy.file_url,
                    policy.storage_path,
                    1 if policy.is_active else 0,
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, policy_id: int, fields: dict[str, Any]) -> bool:
        if not fields:
            return False
        set_clause, params = build_update(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE policies SET {set_clause} WHERE policy_id=%s", (*params, policy_id))
            return cur.rowcount > 0

    def delete_by_id(self, policy_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM policies WHERE policy_id=%s", (policy_id,))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY category, title")
            return [_row_to_policy(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM policies")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
