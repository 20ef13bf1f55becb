from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import as_date, iter_days, now_local, period_range
from ..core.constants import RECENT_LOGS_LIMIT, TOP_USERS_LIMIT
from ..core.enums import ProjectStatus, Role, WorkType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.labels import label_for
from ..projects.billing.factory import RevenueCalculatorFactory
from ..projects.model import Project, TimeLog
from ..projects.repository import ProjectRepository, TimeLogRepository
from ..users.repository import UserRepository

EXPORT_FORMATS = ("json", "csv")


@dataclass(frozen=True)
class ExportFile:
    content: str
    mimetype: str
    filename: str


def _cents(value: float) -> float:
    return round(value * 100) / 100


def _percent_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def _hours_per_project(logs: Sequence[TimeLog]) -> dict[int, float]:
    out: dict[int, float] = {}
    for log in logs:
        out[log.project_id] = out.get(log.project_id, 0.0) + log.hours
    return out


def _efficiency(logged: float, estimated: float) -> int:
    if estimated <= 0:
        return 0
    return round(logged / estimated * 100)


class AnalyticsService:
    """Revenue analytics over a reporting period.

    Revenue follows each project's billing model (see ``projects.billing``).
    Every figure comes from stored data; empty periods yield zeros and empty
    lists.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        time_logs: TimeLogRepository,
        users: UserRepository,
        *,
        revenue: Optional[RevenueCalculatorFactory] = None,
    ):
        self._projects = projects
        self._time_logs = time_logs
        self._users = users
        self._revenue = revenue or RevenueCalculatorFactory()

    def _load_projects(self, project_id) -> list[Project]:
        if project_id in (None, "", "all"):
            return list(self._projects.list_active())
        try:
            pid = int(project_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid project")
        project = self._projects.get_by_id(pid)
        if not project:
            raise NotFoundError("Project not found")
        return [project]

    def _window_revenue(self, projects: Sequence[Project], logs: Sequence[TimeLog], as_of: date) -> float:
        hours = _hours_per_project(logs)
        total = 0.0
        for project in projects:
            created = as_date(project.created_at)
            if created and created > as_of:
                continue
            total += self._revenue.revenue(project, logged_hours=hours.get(project.project_id, 0.0), as_of=as_of)
        return total

    def get_analytics(
        self,
        *,
        current_role: Role,
        period: str = "last30days",
        project_id="all",
        now: Optional[datetime] = None,
    ) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You don't have permission to do this")

        now = now or now_local()
        start_dt, end_dt = period_range(period, now)
        start, end = start_dt.date(), end_dt.date()

        projects = self._load_projects(project_id)
        scoped_id = projects[0].project_id if project_id not in (None, "", "all") else None
        logs = list(self._time_logs.list_between(start, end, project_id=scoped_id))

        prev_end = start - timedelta(days=1)
        prev_start = prev_end - (end - start)
        prev_logs = list(self._time_logs.list_between(prev_start, prev_end, project_id=scoped_id))

        users = list(self._users.list_all())
        users_by_id = {u.user_id: u for u in users}
        projects_by_id = {p.project_id: p for p in projects}

        return {
            "period": {"name": period, "start": start.isoformat(), "end": end.isoformat()},
            "summary": self._summary(projects, logs, prev_logs, users, end=end, prev_end=prev_end),
            "revenue": self._revenue_over_time(projects, logs, start, end),
            "projects": self._enrich_projects(projects, logs, end),
            "time_tracking": self._recent_logs(logs, users_by_id, projects_by_id),
            "work_types": self._work_types(logs),
            "user_productivity": self._user_productivity(logs, users_by_id),
            "project_progress": self._project_progress(projects, logs),
        }

    def _summary(self, projects, logs, prev_logs, users, *, end: date, prev_end: date) -> dict:
        total_hours = sum(log.hours for log in logs)
        prev_hours = sum(log.hours for log in prev_logs)
        revenue = self._window_revenue(projects, logs, end)
        prev_revenue = self._window_revenue(projects, prev_logs, prev_end)
        active_users = sum(1 for u in users if u.is_active)

        return {
            "total_revenue": _cents(revenue),
            "total_hours": _cents(total_hours),
            "active_projects": sum(1 for p in projects if p.status == ProjectStatus.IN_PROGRESS),
            "total_projects": len(projects),
            "active_users": active_users,
            "avg_hours_per_user": round(total_hours / active_users) if active_users else 0,
            "revenue_change": _percent_change(revenue, prev_revenue),
            "hours_change": _percent_change(total_hours, prev_hours),
        }

    def _revenue_over_time(self, projects, logs, start: date, end: date) -> list[dict]:
        daily_hours: dict[tuple[int, date], float] = {}
        for log in logs:
            key = (log.project_id, log.work_date)
            daily_hours[key] = daily_hours.get(key, 0.0) + log.hours

        points: list[dict] = []
        for day in iter_days(start, end):
            amount = sum(
                self._revenue.daily_revenue(
                    p, day=day, hours=daily_hours.get((p.project_id, day), 0.0)
                )
                for p in projects
            )
            points.append({"date": day.isoformat(), "amount": _cents(amount)})
        return points

    def _enrich_projects(self, projects, logs, as_of: date) -> list[dict]:
        hours = _hours_per_project(logs)
        out: list[dict] = []
        for project in projects:
            logged = hours.get(project.project_id, 0.0)
            row = project.to_dict()
            row.update(
                {
                    "logged_hours": logged,
                    "total_revenue": self._revenue.revenue(project, logged_hours=logged, as_of=as_of),
                    "efficiency": _efficiency(logged, project.total_estimated_hours),
                }
            )
            out.append(row)
        return out

    @staticmethod
    def _recent_logs(logs, users_by_id, projects_by_id) -> list[dict]:
        out: list[dict] = []
        for log in logs[:RECENT_LOGS_LIMIT]:
            user = users_by_id.get(log.user_id)
            project = projects_by_id.get(log.project_id)
            row = log.to_dict()
            row.update(
                {
                    "user_name": user.name if user else "Unknown User",
                    "user_email": user.email if user else "",
                    "project_name": project.name if project else "Unknown Project",
                }
            )
            out.append(row)
        return out

    @staticmethod
    def _work_types(logs) -> list[dict]:
        hours = {t: 0.0 for t in WorkType}
        for log in logs:
            hours[log.work_type] += log.hours
        return [
            {"type": t.value, "name": label_for(t), "hours": _cents(h)}
            for t, h in hours.items()
            if _cents(h) > 0
        ]

    @staticmethod
    def _user_productivity(logs, users_by_id) -> list[dict]:
        hours: dict[int, float] = {}
        for log in logs:
            hours[log.user_id] = hours.get(log.user_id, 0.0) + log.hours
        rows = [
            {
                "user_id": user_id,
                "name": users_by_id[user_id].name if user_id in users_by_id else "Unknown",
                "hours": _cents(h),
            }
            for user_id, h in hours.items()
        ]
        rows.sort(key=lambda r: r["hours"], reverse=True)
        return rows[:TOP_USERS_LIMIT]

    @staticmethod
    def _project_progress(projects, logs) -> list[dict]:
        hours = _hours_per_project(logs)
        rows = []
        for project in projects:
            logged = hours.get(project.project_id, 0.0)
            estimated = project.total_estimated_hours
            rows.append(
                {
                    "id": project.project_id,
                    "name": project.name,
                    "progress": min(100, _efficiency(logged, estimated)),
                    "logged_hours": logged,
                    "estimated_hours": estimated,
                    "status": project.status.value,
                }
            )
        rows.sort(key=lambda r: r["progress"], reverse=True)
        return rows

    def export(
        self,
        *,
        current_role: Role,
        period: str = "last30days",
        project_id="all",
        fmt: str = "json",
        now: Optional[datetime] = None,
    ) -> ExportFile:
        if fmt not in EXPORT_FORMATS:
            raise ValidationError("Export format must be json or csv")
        now = now or now_local()
        analytics = self.get_analytics(current_role=current_role, period=period, project_id=project_id, now=now)
        stem = f"analytics_{period}_{now.strftime('%Y%m%d')}"

        if fmt == "csv":
            return ExportFile(content=self._to_csv(analytics), mimetype="text/csv", filename=f"{stem}.csv")
        return ExportFile(
            content=json.dumps(analytics, indent=2), mimetype="application/json", filename=f"{stem}.json"
        )

    @staticmethod
    def _to_csv(analytics: dict) -> str:
        out = io.StringIO()
        writer = csv.writer(out)
        summary = analytics["summary"]

        writer.writerow(["Summary"])
        writer.writerow(["Metric", "Value"])
        writer.writerow(["Total Revenue", summary["total_revenue"]])
        writer.writerow(["Total Hours", summary["total_hours"]])
        writer.writerow(["Active Projects", summary["active_projects"]])
        writer.writerow(["Active Users", summary["active_users"]])
        writer.writerow([])

        writer.writerow(["Projects"])
        writer.writerow(["Name", "Type", "Revenue", "Hours", "Status"])
        for p in analytics["projects"]:
            writer.writerow([p["name"], p["project_type"], p["total_revenue"], p["logged_hours"], p["status"]])
        writer.writerow([])

        writer.writerow(["Recent Time Logs"])
        writer.writerow(["User", "Project", "Work Type", "Hours", "Date"])
        for log in analytics["time_tracking"]:
            writer.writerow([log["user_name"], log["project_name"], log["work_type"], log["hours"], log["date"]])

        return out.getvalue()
