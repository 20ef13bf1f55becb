from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_optional_date
from ..common.validators import (
    require_between,
    require_enum,
    require_min_length,
    require_non_negative,
)
from ..core.constants import LOG_DESCRIPTION_MIN, MAX_LOG_HOURS, MIN_LOG_HOURS, RECENT_LOGS_LIMIT
from ..core.enums import (
    BillingFrequency,
    CostCategory,
    DeveloperRole,
    ProjectStatus,
    ProjectType,
    RevenueType,
    Role,
    WorkType,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .billing.factory import RevenueCalculatorFactory
from .model import Project, TimeLog
from .repository import ProjectRepository, TimeLogRepository

logger = logging.getLogger(__name__)

OPEN_STATUSES = (ProjectStatus.PLANNING, ProjectStatus.IN_PROGRESS)

_MONEY_FIELDS = ("income", "monthly_amount", "hourly_rate")
_TEXT_FIELDS = ("description", "client")


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You don't have permission to do this")


def _parse_date_field(value: Any, field_name: str) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return parse_optional_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def _clean_category_map(raw: Any, field_name: str) -> dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{field_name} must be an object")
    out: dict[str, float] = {}
    for key, value in raw.items():
        category = require_enum(key, CostCategory, f"{field_name} category")
        if value in (None, ""):
            continue
        out[category.value] = require_non_negative(value, f"{field_name} ({category.value})")
    return out


def _clean_developer_roles(raw: Any) -> dict[str, list[int]]:
    if not isinstance(raw, Mapping):
        raise ValidationError("Developer roles must be an object")
    out: dict[str, list[int]] = {}
    for key, assigned in raw.items():
        role = require_enum(key, DeveloperRole, "developer role")
        if assigned in (None, ""):
            assigned = []
        elif not isinstance(assigned, (list, tuple)):
            assigned = [assigned]
        try:
            out[role.value] = [int(a) for a in assigned]
        except (TypeError, ValueError):
            raise ValidationError("Developer role assignments must be user ids")
    if not out.get(DeveloperRole.TEAM_LEAD.value):
        raise ValidationError("At least one Team Lead is required")
    return out


def _sum_hours(logs: Sequence[TimeLog]) -> float:
    return float(sum(log.hours for log in logs))


def _hours_by(logs: Sequence[TimeLog], key) -> dict:
    out: dict = {}
    for log in logs:
        k = key(log)
        out[k] = out.get(k, 0.0) + log.hours
    return out


class ProjectService:
    """Use case: project tracking and time logging."""

    def __init__(
        self,
        projects: ProjectRepository,
        time_logs: TimeLogRepository,
        *,
        revenue: Optional[RevenueCalculatorFactory] = None,
    ):
        self._projects = projects
        self._time_logs = time_logs
        self._revenue = revenue or RevenueCalculatorFactory()

    # ---- projects ----

    def _clean_project_fields(self, data: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {}

        if not partial or "name" in data:
            fields["name"] = require_min_length((data.get("name") or "").strip(), "Project name", 2)
        for name in _TEXT_FIELDS:
            if name in data:
                fields[name] = (data.get(name) or "").strip()
        if "status" in data:
            fields["status"] = require_enum(data["status"], ProjectStatus, "status")
        if "project_type" in data:
            fields["project_type"] = require_enum(data["project_type"], ProjectType, "project type")
        if "revenue_type" in data:
            fields["revenue_type"] = require_enum(data["revenue_type"], RevenueType, "revenue type")
        if "billing_frequency" in data:
            fields["billing_frequency"] = require_enum(
                data["billing_frequency"], BillingFrequency, "billing frequency"
            )
        for name in _MONEY_FIELDS:
            if name in data:
                fields[name] = require_non_negative(data[name], name.replace("_", " ").capitalize())
        if "costs" in data:
            fields["costs"] = _clean_category_map(data["costs"], "Costs")
        if "estimated_hours" in data:
            fields["estimated_hours"] = _clean_category_map(data["estimated_hours"], "Estimated hours")
        if not partial or "developer_roles" in data:
            fields["developer_roles"] = _clean_developer_roles(data.get("developer_roles") or {})
        if "start_date" in data:
            fields["start_date"] = _parse_date_field(data["start_date"], "Start date")
        if "end_date" in data:
            fields["end_date"] = _parse_date_field(data["end_date"], "End date")

        return fields

    @staticmethod
    def _check_dates(start: Optional[date], end: Optional[date]) -> None:
        if start and end and end < start:
            raise ValidationError("End date cannot be before start date")

    def create_project(self, *, current_role: Role, data: Mapping[str, Any]) -> Project:
        _require_admin(current_role)
        fields = self._clean_project_fields(data, partial=False)
        fields.setdefault("status", ProjectStatus.PLANNING)
        self._check_dates(fields.get("start_date"), fields.get("end_date"))

        draft = Project(project_id=0, **fields)
        project_id = self._projects.create(draft)
        logger.info("Project %s created: %s", project_id, draft.name)
        return self.get_project(project_id)

    def update_project(self, *, current_role: Role, project_id: int, data: Mapping[str, Any]) -> Project:
        _require_admin(current_role)
        current = self.get_project(project_id)
        fields = self._clean_project_fields(data, partial=True)
        self._check_dates(
            fields.get("start_date", current.start_date), fields.get("end_date", current.end_date)
        )
        if fields:
            self._projects.update_fields(int(project_id), fields)
        return self.get_project(project_id)

    def delete_project(self, *, current_role: Role, project_id: int, now: Optional[datetime] = None) -> None:
        """Soft delete: the project disappears from lists but its logs stay."""
        _require_admin(current_role)
        self.get_project(project_id)
        self._projects.update_fields(int(project_id), {"is_active": False, "deleted_at": now or now_local()})
        logger.info("Project %s deleted", project_id)

    def get_project(self, project_id: int) -> Project:
        project = self._projects.get_by_id(int(project_id))
        if not project:
            raise NotFoundError("Project not found")
        return project

    def list_projects(self, *, now: Optional[datetime] = None) -> list[Project]:
        now = now or now_local()
        out: list[Project] = []
        for project in self._projects.list_active():
            if project.created_at and project.created_at > now:
                project = replace(project, created_at=now)
            out.append(project)
        return out

    def list_user_projects(
        self,
        *,
        user_id: int,
        current_role: Role,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Project]:
        """Projects a user is assigned to (admins see every project).

        ``status`` None keeps planning and in-progress projects; ``"all"``
        disables the filter.
        """
        projects = self.list_projects()
        if current_role != Role.ADMIN:
            projects = [p for p in projects if int(user_id) in p.assigned_user_ids()]

        if status is None:
            projects = [p for p in projects if p.status in OPEN_STATUSES]
        elif status != "all":
            wanted = require_enum(status, ProjectStatus, "status")
            projects = [p for p in projects if p.status == wanted]

        term = (search or "").strip().lower()
        if term:
            projects = [
                p
                for p in projects
                if term in p.name.lower() or term in p.client.lower() or term in p.description.lower()
            ]
        return projects

    def project_revenue(self, project: Project, *, as_of: date, logged_hours: Optional[float] = None) -> float:
        hours = project.total_logged_hours if logged_hours is None else logged_hours
        return self._revenue.revenue(project, logged_hours=hours, as_of=as_of)

    # ---- time logs ----

    @staticmethod
    def _clean_log_fields(data: Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if not partial or "project_id" in data:
            try:
                fields["project_id"] = int(data.get("project_id"))
            except (TypeError, ValueError):
                raise ValidationError("Please select a project")
        if not partial or "work_type" in data:
            fields["work_type"] = require_enum(data.get("work_type"), WorkType, "work type")
        if not partial or "hours" in data:
            fields["hours"] = require_between(data.get("hours"), "Hours", MIN_LOG_HOURS, MAX_LOG_HOURS)
        if not partial or "date" in data:
            work_date = _parse_date_field(data.get("date"), "Date")
            if work_date is None:
                raise ValidationError("Date is required")
            fields["work_date"] = work_date
        if not partial or "description" in data:
            fields["description"] = require_min_length(
                (data.get("description") or "").strip(), "Description", LOG_DESCRIPTION_MIN
            )
        return fields

    def _require_active_project(self, project_id: int) -> Project:
        project = self.get_project(project_id)
        if not project.is_active:
            raise ValidationError("Cannot log time on a deleted project")
        return project

    def _recompute_total_hours(self, project_id: int) -> float:
        total = self._time_logs.sum_hours_for_project(int(project_id))
        self._projects.update_fields(int(project_id), {"total_logged_hours": total})
        return total

    def get_time_log(self, time_log_id: int) -> TimeLog:
        log = self._time_logs.get_by_id(int(time_log_id))
        if not log:
            raise NotFoundError("Time log not found")
        return log

    def log_time(self, *, user_id: int, data: Mapping[str, Any]) -> TimeLog:
        fields = self._clean_log_fields(data, partial=False)
        self._require_active_project(fields["project_id"])

        log_id = self._time_logs.create(TimeLog(time_log_id=0, user_id=int(user_id), **fields))
        self._recompute_total_hours(fields["project_id"])
        return self.get_time_log(log_id)

    def _require_owner(self, log: TimeLog, *, current_user_id: int, current_role: Role) -> None:
        if current_role != Role.ADMIN and log.user_id != int(current_user_id):
            raise AuthorizationError("You can only change your own time logs")

    def update_time_log(
        self, *, current_user_id: int, current_role: Role, time_log_id: int, data: Mapping[str, Any]
    ) -> TimeLog:
        log = self.get_time_log(time_log_id)
        self._require_owner(log, current_user_id=current_user_id, current_role=current_role)

        fields = self._clean_log_fields(data, partial=True)
        new_project_id = fields.get("project_id", log.project_id)
        if new_project_id != log.project_id:
            self._require_active_project(new_project_id)

        if fields:
            self._time_logs.update_fields(log.time_log_id, fields)
        for project_id in {log.project_id, new_project_id}:
            self._recompute_total_hours(project_id)
        return self.get_time_log(log.time_log_id)

    def delete_time_log(self, *, current_user_id: int, current_role: Role, time_log_id: int) -> None:
        log = self.get_time_log(time_log_id)
        self._require_owner(log, current_user_id=current_user_id, current_role=current_role)
        self._time_logs.delete_by_id(log.time_log_id)
        self._recompute_total_hours(log.project_id)

    def project_time_logs(self, project_id: int) -> list[TimeLog]:
        return list(self._time_logs.list_for_project(int(project_id)))

    def user_time_logs(self, user_id: int, *, limit: Optional[int] = None) -> list[TimeLog]:
        logs = list(self._time_logs.list_for_user(int(user_id), limit=limit))
        return logs[:limit] if limit else logs

    # ---- analytics ----

    def project_analytics(self, project_id: int, *, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        project = self.get_project(project_id)
        logs = self.project_time_logs(project.project_id)

        logged = _sum_hours(logs)
        estimated = project.total_estimated_hours
        progress = (logged / estimated) * 100 if estimated > 0 else 0.0
        revenue = self.project_revenue(project, as_of=today, logged_hours=logged)

        return {
            "project": project.to_dict(),
            "total_logged_hours": logged,
            "total_estimated_hours": estimated,
            "remaining_hours": max(0.0, estimated - logged),
            "progress_percentage": min(100.0, progress),
            "revenue": revenue,
            "profit": revenue - project.total_costs,
            "hours_by_work_type": _hours_by(logs, lambda log: log.work_type.value),
            "hours_by_user": _hours_by(logs, lambda log: log.user_id),
            "recent_logs": [log.to_dict() for log in logs[:RECENT_LOGS_LIMIT]],
            "time_logs_count": len(logs),
        }

    def dashboard_analytics(self, *, current_role: Role, today: Optional[date] = None) -> dict:
        _require_admin(current_role)
        today = today or now_local().date()
        projects = self.list_projects()
        logs = list(self._time_logs.list_all())

        revenue = sum(self.project_revenue(p, as_of=today) for p in projects)
        costs = sum(p.total_costs for p in projects)

        return {
            "total_projects": len(projects),
            "projects_by_status": {
                s.value: sum(1 for p in projects if p.status == s) for s in ProjectStatus
            },
            "active_projects": sum(1 for p in projects if p.status == ProjectStatus.IN_PROGRESS),
            "completed_projects": sum(1 for p in projects if p.status == ProjectStatus.COMPLETED),
            "total_revenue": revenue,
            "total_costs": costs,
            "total_profit": revenue - costs,
            "total_logged_hours": _sum_hours(logs),
            "projects": [p.to_dict() for p in projects[:5]],
            "recent_time_logs": [log.to_dict() for log in logs[:10]],
        }

    def project_metrics(self, *, today: Optional[date] = None) -> dict:
        """Headline figures for the admin project list."""
        today = today or now_local().date()
        projects = self.list_projects()
        return {
            "total_projects": len(projects),
            "active_projects": sum(1 for p in projects if p.status == ProjectStatus.IN_PROGRESS),
            "total_revenue": sum(self.project_revenue(p, as_of=today) for p in projects),
            "total_hours": sum(p.total_logged_hours for p in projects),
        }
