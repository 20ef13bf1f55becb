from __future__ import annotations

from datetime import date, datetime

import pytest

from conftest import InMemoryProjects, InMemoryTimeLogs
from src.bizdesk.bizdesk.core.enums import ProjectStatus, ProjectType, Role, WorkType
from src.bizdesk.bizdesk.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.bizdesk.bizdesk.projects.model import Project, TimeLog, normalize_developer_roles
from src.bizdesk.bizdesk.projects.service import ProjectService


def _payload(**overrides):
    data = {
        "name": "Client Portal",
        "client": "Acme",
        "description": "Customer self-service portal",
        "project_type": "hourly",
        "hourly_rate": 40,
        "costs": {"backend": 1000, "deployment": "250"},
        "estimated_hours": {"backend": 80, "frontend_web": 20},
        "developer_roles": {"team_lead": 1, "backend": [2, 3]},
        "start_date": "2026-01-10",
    }
    data.update(overrides)
    return data


def _service(projects=None, logs=None):
    return ProjectService(projects or InMemoryProjects(), logs or InMemoryTimeLogs())


def _log(time_log_id, *, project_id=1, user_id=2, hours=2.0, work_date=date(2026, 2, 1), work_type=WorkType.BACKEND):
    return TimeLog(
        time_log_id,
        project_id=project_id,
        user_id=user_id,
        work_type=work_type,
        hours=hours,
        work_date=work_date,
        description="Worked on things",
    )


def test_normalize_developer_roles_accepts_single_ids():
    assert normalize_developer_roles({"team_lead": "4", "backend": [1, 2], "ui_designer": None}) == {
        "team_lead": [4],
        "backend": [1, 2],
        "ui_designer": [],
    }


def test_create_project_cleans_payload():
    svc = _service()
    project = svc.create_project(current_role=Role.ADMIN, data=_payload())

    assert project.status == ProjectStatus.PLANNING
    assert project.project_type == ProjectType.HOURLY
    assert project.costs == {"backend": 1000.0, "deployment": 250.0}
    assert project.total_costs == 1250
    assert project.total_estimated_hours == 100
    assert project.developer_roles == {"team_lead": [1], "backend": [2, 3]}
    assert project.assigned_user_ids() == {1, 2, 3}
    assert project.start_date == date(2026, 1, 10)


def test_create_project_requires_admin_and_team_lead():
    svc = _service()
    with pytest.raises(AuthorizationError):
        svc.create_project(current_role=Role.USER, data=_payload())
    with pytest.raises(ValidationError, match="Team Lead"):
        svc.create_project(current_role=Role.ADMIN, data=_payload(developer_roles={"backend": [2]}))
    with pytest.raises(ValidationError):
        svc.create_project(current_role=Role.ADMIN, data=_payload(name="X"))


def test_update_project_rejects_end_before_start():
    svc = _service()
    project = svc.create_project(current_role=Role.ADMIN, data=_payload())

    with pytest.raises(ValidationError, match="End date"):
        svc.update_project(current_role=Role.ADMIN, project_id=project.project_id, data={"end_date": "2026-01-01"})

    updated = svc.update_project(
        current_role=Role.ADMIN, project_id=project.project_id, data={"status": "in_progress"}
    )
    assert updated.status == ProjectStatus.IN_PROGRESS


def test_delete_project_is_soft():
    projects = InMemoryProjects()
    svc = _service(projects)
    project = svc.create_project(current_role=Role.ADMIN, data=_payload())

    svc.delete_project(current_role=Role.ADMIN, project_id=project.project_id, now=datetime(2026, 2, 1))

    assert svc.list_projects() == []
    assert projects.get_by_id(project.project_id).deleted_at == datetime(2026, 2, 1)


def test_list_projects_clamps_future_creation_time():
    projects = InMemoryProjects([Project(1, "Future", created_at=datetime(2030, 1, 1))])
    now = datetime(2026, 1, 1, 9, 0)

    (project,) = _service(projects).list_projects(now=now)
    assert project.created_at == now


def test_list_user_projects_filters_assignment_status_and_search():
    projects = InMemoryProjects(
        [
            Project(1, "Alpha", client="Acme", developer_roles={"team_lead": [7]}),
            Project(2, "Beta", status=ProjectStatus.COMPLETED, developer_roles={"team_lead": [7]}),
            Project(3, "Gamma", status=ProjectStatus.IN_PROGRESS, developer_roles={"team_lead": [8]}),
        ]
    )
    svc = _service(projects)

    mine = svc.list_user_projects(user_id=7, current_role=Role.USER)
    assert [p.name for p in mine] == ["Alpha"]

    everything = svc.list_user_projects(user_id=7, current_role=Role.USER, status="all")
    assert sorted(p.name for p in everything) == ["Alpha", "Beta"]

    admin_view = svc.list_user_projects(user_id=1, current_role=Role.ADMIN, search="gam")
    assert [p.name for p in admin_view] == ["Gamma"]

    by_client = svc.list_user_projects(user_id=7, current_role=Role.USER, search="ACME")
    assert [p.name for p in by_client] == ["Alpha"]


def test_log_time_updates_project_total():
    projects = InMemoryProjects([Project(1, "Alpha", developer_roles={"team_lead": [2]})])
    svc = _service(projects)

    log = svc.log_time(
        user_id=2,
        data={"project_id": "1", "work_type": "backend", "hours": "3.5", "date": "2026-02-02", "description": "Built API"},
    )

    assert log.hours == 3.5
    assert log.work_date == date(2026, 2, 2)
    assert projects.get_by_id(1).total_logged_hours == 3.5


def test_log_time_validates_input_and_project():
    projects = InMemoryProjects([Project(1, "Alpha"), Project(2, "Gone", is_active=False)])
    svc = _service(projects)
    base = {"project_id": 1, "work_type": "backend", "hours": 2, "date": "2026-02-02", "description": "Built API"}

    with pytest.raises(ValidationError):
        svc.log_time(user_id=2, data={**base, "hours": 25})
    with pytest.raises(ValidationError):
        svc.log_time(user_id=2, data={**base, "description": "abc"})
    with pytest.raises(ValidationError):
        svc.log_time(user_id=2, data={**base, "work_type": "gaming"})
    with pytest.raises(ValidationError, match="deleted project"):
        svc.log_time(user_id=2, data={**base, "project_id": 2})
    with pytest.raises(NotFoundError):
        svc.log_time(user_id=2, data={**base, "project_id": 99})


def test_moving_a_log_recomputes_both_projects():
    projects = InMemoryProjects([Project(1, "Alpha", total_logged_hours=5), Project(2, "Beta")])
    logs = InMemoryTimeLogs([_log(1, project_id=1, hours=5)])
    svc = _service(projects, logs)

    svc.update_time_log(current_user_id=2, current_role=Role.USER, time_log_id=1, data={"project_id": 2, "hours": 4})

    assert projects.get_by_id(1).total_logged_hours == 0
    assert projects.get_by_id(2).total_logged_hours == 4


def test_only_owner_or_admin_changes_a_log():
    projects = InMemoryProjects([Project(1, "Alpha", total_logged_hours=2)])
    logs = InMemoryTimeLogs([_log(1)])
    svc = _service(projects, logs)

    with pytest.raises(AuthorizationError):
        svc.delete_time_log(current_user_id=9, current_role=Role.USER, time_log_id=1)

    svc.delete_time_log(current_user_id=1, current_role=Role.ADMIN, time_log_id=1)
    assert logs.get_by_id(1) is None
    assert projects.get_by_id(1).total_logged_hours == 0


def test_project_analytics_reports_progress_and_profit():
    project = Project(
        1,
        "Alpha",
        project_type=ProjectType.HOURLY,
        hourly_rate=100,
        costs={"backend": 300},
        estimated_hours={"backend": 10},
    )
    logs = InMemoryTimeLogs(
        [
            _log(1, hours=4, user_id=2),
            _log(2, hours=8, user_id=3, work_type=WorkType.TESTING),
        ]
    )
    stats = _service(InMemoryProjects([project]), logs).project_analytics(1, today=date(2026, 3, 1))

    assert stats["total_logged_hours"] == 12
    assert stats["remaining_hours"] == 0
    assert stats["progress_percentage"] == 100
    assert stats["revenue"] == 1200
    assert stats["profit"] == 900
    assert stats["hours_by_work_type"] == {"backend": 4, "testing": 8}
    assert stats["hours_by_user"] == {2: 4, 3: 8}


def test_dashboard_analytics_requires_admin():
    with pytest.raises(AuthorizationError):
        _service().dashboard_analytics(current_role=Role.USER)

    stats = _service(InMemoryProjects([Project(1, "Alpha", income=500)])).dashboard_analytics(
        current_role=Role.ADMIN, today=date(2026, 3, 1)
    )
    assert stats["total_projects"] == 1
    assert stats["projects_by_status"]["planning"] == 1
    assert stats["total_revenue"] == 500
