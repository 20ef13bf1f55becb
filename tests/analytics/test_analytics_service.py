from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime

import pytest

from conftest import InMemoryProjects, InMemoryTimeLogs, InMemoryUsers, make_user
from src.bizdesk.bizdesk.analytics.service import AnalyticsService
from src.bizdesk.bizdesk.core.enums import ProjectStatus, ProjectType, Role, WorkType
from src.bizdesk.bizdesk.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.bizdesk.bizdesk.projects.model import Project, TimeLog

NOW = datetime(2026, 3, 31, 12, 0)


def _log(time_log_id, *, project_id, user_id, hours, work_date, work_type=WorkType.BACKEND):
    return TimeLog(
        time_log_id,
        project_id=project_id,
        user_id=user_id,
        work_type=work_type,
        hours=hours,
        work_date=work_date,
        description="Regular work",
    )


@pytest.fixture
def service():
    projects = InMemoryProjects(
        [
            Project(
                1,
                "Portal",
                status=ProjectStatus.IN_PROGRESS,
                project_type=ProjectType.HOURLY,
                hourly_rate=50,
                estimated_hours={"backend": 10},
                created_at=datetime(2026, 1, 1),
            ),
            Project(
                2,
                "Support",
                project_type=ProjectType.RETAINER,
                monthly_amount=3000,
                start_date=date(2026, 3, 1),
                created_at=datetime(2026, 2, 20),
            ),
        ]
    )
    logs = InMemoryTimeLogs(
        [
            _log(1, project_id=1, user_id=2, hours=4, work_date=date(2026, 3, 30)),
            _log(2, project_id=1, user_id=3, hours=2, work_date=date(2026, 3, 25), work_type=WorkType.TESTING),
            _log(3, project_id=1, user_id=2, hours=3, work_date=date(2026, 3, 20)),
        ]
    )
    users = InMemoryUsers(
        [
            make_user(2, name="Ana"),
            make_user(3, name="Ben"),
            make_user(4, name="Cid", is_active=False),
        ]
    )
    return AnalyticsService(projects, logs, users)


def test_analytics_requires_admin(service):
    with pytest.raises(AuthorizationError):
        service.get_analytics(current_role=Role.USER, now=NOW)


def test_summary_compares_with_previous_window(service):
    data = service.get_analytics(current_role=Role.ADMIN, period="last7days", now=NOW)
    summary = data["summary"]

    assert data["period"] == {"name": "last7days", "start": "2026-03-24", "end": "2026-03-31"}
    assert summary["total_hours"] == 6
    # 6h x 50 hourly plus one month of the retainer
    assert summary["total_revenue"] == 3300
    assert summary["revenue_change"] == 4.8
    assert summary["hours_change"] == 100.0
    assert summary["active_projects"] == 1
    assert summary["total_projects"] == 2
    assert summary["active_users"] == 2
    assert summary["avg_hours_per_user"] == 3


def test_revenue_over_time_has_one_point_per_day(service):
    data = service.get_analytics(current_role=Role.ADMIN, period="last7days", now=NOW)
    points = {p["date"]: p["amount"] for p in data["revenue"]}

    assert len(points) == 8
    assert points["2026-03-30"] == 300
    assert points["2026-03-25"] == 200
    assert points["2026-03-24"] == 100


def test_breakdowns(service):
    data = service.get_analytics(current_role=Role.ADMIN, period="last7days", now=NOW)

    assert data["work_types"] == [
        {"type": "backend", "name": "Backend Development", "hours": 4},
        {"type": "testing", "name": "Testing", "hours": 2},
    ]
    assert [(u["name"], u["hours"]) for u in data["user_productivity"]] == [("Ana", 4), ("Ben", 2)]
    assert [(p["name"], p["progress"]) for p in data["project_progress"]] == [("Portal", 60), ("Support", 0)]
    assert [log["user_name"] for log in data["time_tracking"]] == ["Ana", "Ben"]
    portal = next(p for p in data["projects"] if p["name"] == "Portal")
    assert portal["logged_hours"] == 6
    assert portal["efficiency"] == 60
    assert portal["total_revenue"] == 300


def test_single_project_scope(service):
    data = service.get_analytics(current_role=Role.ADMIN, period="last7days", project_id="1", now=NOW)
    assert data["summary"]["total_projects"] == 1
    assert data["summary"]["total_revenue"] == 300

    with pytest.raises(NotFoundError):
        service.get_analytics(current_role=Role.ADMIN, project_id="99", now=NOW)
    with pytest.raises(ValidationError):
        service.get_analytics(current_role=Role.ADMIN, project_id="abc", now=NOW)


def test_empty_data_yields_zeros_not_samples():
    service = AnalyticsService(InMemoryProjects(), InMemoryTimeLogs(), InMemoryUsers())
    data = service.get_analytics(current_role=Role.ADMIN, period="last7days", now=NOW)

    assert data["summary"]["total_revenue"] == 0
    assert data["summary"]["avg_hours_per_user"] == 0
    assert all(p["amount"] == 0 for p in data["revenue"])
    assert data["projects"] == []
    assert data["time_tracking"] == []
    assert data["work_types"] == []
    assert data["user_productivity"] == []


def test_export_formats(service):
    as_json = service.export(current_role=Role.ADMIN, period="last7days", fmt="json", now=NOW)
    assert as_json.filename == "analytics_last7days_20260331.json"
    assert json.loads(as_json.content)["summary"]["total_hours"] == 6

    as_csv = service.export(current_role=Role.ADMIN, period="last7days", fmt="csv", now=NOW)
    assert as_csv.mimetype == "text/csv"
    rows = list(csv.reader(io.StringIO(as_csv.content)))
    assert rows[0] == ["Summary"]
    assert ["Total Revenue", "3300.0"] in rows
    assert ["Projects"] in rows and ["Recent Time Logs"] in rows

    with pytest.raises(ValidationError):
        service.export(current_role=Role.ADMIN, fmt="xlsx", now=NOW)
