from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import BillingFrequency, ProjectStatus, ProjectType, RevenueType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import build_update, db_cursor, fetchall, fetchone, from_json, to_json
from .model import Project, normalize_developer_roles
from .repository import ProjectRepository

_COLUMNS = """
    project_id, name, description, client, status, project_type, revenue_type, billing_frequency,
    income, monthly_amount, hourly_rate, costs, estimated_hours, developer_roles,
    start_date, end_date, total_logged_hours, is_active, created_at, updated_at, deleted_at
"""

JSON_FIELDS = frozenset({"costs", "estimated_hours", "developer_roles"})


def _row_to_project(row: dict) -> Project:
    return Project(
        project_id=int(row["project_id"]),
        name=row["name"],
        description=row.get("description") or "",
        client=row.get("client") or "",
        status=ProjectStatus(row.get("status") or ProjectStatus.PLANNING.value),
        project_type=ProjectType(row.get("project_type") or ProjectType.ONE_TIME.value),
        revenue_type=RevenueType(row.get("revenue_type") or RevenueType.FIXED.value),
        billing_frequency=BillingFrequency(row.get("billing_frequency") or BillingFrequency.MONTHLY.value),
        income=float(row.get("income") or 0),
        monthly_amount=float(row.get("monthly_amount") or 0),
        hourly_rate=float(row.get("hourly_rate") or 0),
        costs=from_json(row.get("costs"), {}),
        estimated_hours=from_json(row.get("estimated_hours"), {}),
        developer_roles=normalize_developer_roles(from_json(row.get("developer_roles"), {})),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
        total_logged_hours=float(row.get("total_logged_hours") or 0),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        deleted_at=row.get("deleted_at"),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, project_id: int) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects WHERE project_id=%s", (project_id,))
            row = fetchone(cur)
            return _row_to_project(row) if row else None

    def create(self, project: Project) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(
                    name, description, client, status, project_type, revenue_type, billing_frequency,
                    income, monthly_amount, hourly_rate, costs, estimated_hours, developer_roles,
                    start_date, end_date, total_logged_hours, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0,1)
                """,
                (
                    project.name,
                    project.description,
                    project.client,
                    project.status.value,
                    project.project_type.value,
                    project.revenue_type.value,
                    project.billing_frequency.value,
                    project.income,
                    project.monthly_amount,
                    project.hourly_rate,
                    to_json(project.costs),
                    to_json(project.estimated_hours),
                    to_json(project.developer_roles),
                    project.start_date,
                    project.end_date,
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, project_id: int, fields: dict[str, Any]) -> bool:
        if not fields:
            return False
        set_clause, params = build_update(fields, json_fields=JSON_FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE projects SET {set_clause} WHERE project_id=%s", (*params, project_id))
            return cur.rowcount > 0

    def list_active(self) -> Sequence[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM projects WHERE is_active=1 ORDER BY created_at DESC, project_id DESC"
            )
            return [_row_to_project(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects ORDER BY created_at DESC, project_id DESC")
            return [_row_to_project(r) for r in fetchall(cur)]
