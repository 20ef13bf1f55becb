from __future__ import annotations

from dataclasses import fields as dc_fields
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

import pytest
from werkzeug.security import generate_password_hash

from src.bizdesk.bizdesk.core.enums import LeaveStatus, Role
from src.bizdesk.bizdesk.leaves.model import Leave
from src.bizdesk.bizdesk.policies.model import Policy
from src.bizdesk.bizdesk.projects.model import Project, TimeLog
from src.bizdesk.bizdesk.storage.local_storage import LocalFileStorage
from src.bizdesk.bizdesk.users.model import NewUser, User


class InMemoryUsers:
    def __init__(self, users: Optional[list[User]] = None):
        self.users_by_id: dict[int, User] = {u.user_id: u for u in users or []}
        self._id = max(self.users_by_id, default=0)
        self.last_logins: dict[int, datetime] = {}

    def add(self, user: User) -> User:
        self.users_by_id[user.user_id] = user
        self._id = max(self._id, user.user_id)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        for user in self.users_by_id.values():
            if user.email == email and user.deleted_at is None:
                return user
        return None

    def create(self, user: NewUser) -> int:
        self._id += 1
        values = {f.name: getattr(user, f.name) for f in dc_fields(user)}
        self.users_by_id[self._id] = User(user_id=self._id, created_at=datetime(2025, 1, self._id % 28 + 1), **values)
        return self._id

    def update_fields(self, user_id: int, fields: dict[str, Any]) -> bool:
        if user_id not in self.users_by_id:
            return False
        self.users_by_id[user_id] = replace(self.users_by_id[user_id], **fields)
        return True

    def list_all(self):
        users = [u for u in self.users_by_id.values() if u.deleted_at is None]
        return sorted(users, key=lambda u: u.user_id, reverse=True)

    def list_active(self, *, role: Optional[Role] = None):
        users = [u for u in self.list_all() if u.is_active and (role is None or u.role == role)]
        return sorted(users, key=lambda u: u.name)

    def list_company_ids(self):
        return [u.company_id for u in self.users_by_id.values() if u.company_id]

    def list_without_company_id(self):
        users = [u for u in self.list_all() if not u.company_id]
        return sorted(users, key=lambda u: u.user_id)

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        self.last_logins[user_id] = at
        self.update_fields(user_id, {"last_login_at": at})


class InMemoryProjects:
    def __init__(self, projects: Optional[list[Project]] = None):
        self.projects_by_id: dict[int, Project] = {p.project_id: p for p in projects or []}
        self._id = max(self.projects_by_id, default=0)

    def get_by_id(self, project_id: int) -> Optional[Project]:
        return self.projects_by_id.get(project_id)

    def create(self, project: Project) -> int:
        self._id += 1
        self.projects_by_id[self._id] = replace(
            project, project_id=self._id, created_at=project.created_at or datetime(2025, 1, 1)
        )
        return self._id

    def update_fields(self, project_id: int, fields: dict[str, Any]) -> bool:
        if project_id not in self.projects_by_id:
            return False
        self.projects_by_id[project_id] = replace(self.projects_by_id[project_id], **fields)
        return True

    def list_active(self):
        return [p for p in self.list_all() if p.is_active]

    def list_all(self):
        return sorted(self.projects_by_id.values(), key=lambda p: p.project_id, reverse=True)


class InMemoryTimeLogs:
    def __init__(self, logs: Optional[list[TimeLog]] = None):
        self.logs_by_id: dict[int, TimeLog] = {log.time_log_id: log for log in logs or []}
        self._id = max(self.logs_by_id, default=0)

    def _sorted(self, logs):
        return sorted(logs, key=lambda log: (log.work_date, log.time_log_id), reverse=True)

    def get_by_id(self, time_log_id: int) -> Optional[TimeLog]:
        return self.logs_by_id.get(time_log_id)

    def create(self, log: TimeLog) -> int:
        self._id += 1
        self.logs_by_id[self._id] = replace(log, time_log_id=self._id)
        return self._id

    def update_fields(self, time_log_id: int, fields: dict[str, Any]) -> bool:
        if time_log_id not in self.logs_by_id:
            return False
        self.logs_by_id[time_log_id] = replace(self.logs_by_id[time_log_id], **fields)
        return True

    def delete_by_id(self, time_log_id: int) -> bool:
        return self.logs_by_id.pop(time_log_id, None) is not None

    def list_for_project(self, project_id: int):
        return self._sorted(log for log in self.logs_by_id.values() if log.project_id == project_id)

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None):
        logs = self._sorted(log for log in self.logs_by_id.values() if log.user_id == user_id)
        return logs[:limit] if limit else logs

    def list_between(self, start: date, end: date, *, project_id: Optional[int] = None):
        return self._sorted(
            log
            for log in self.logs_by_id.values()
            if start <= log.work_date <= end and (project_id is None or log.project_id == project_id)
        )

    def list_all(self):
        return self._sorted(self.logs_by_id.values())

    def sum_hours_for_project(self, project_id: int) -> float:
        return float(sum(log.hours for log in self.logs_by_id.values() if log.project_id == project_id))


class InMemoryLeaves:
    def __init__(self, leaves: Optional[list[Leave]] = None):
        self.leaves_by_id: dict[int, Leave] = {leave.leave_id: leave for leave in leaves or []}
        self._id = max(self.leaves_by_id, default=0)

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        return self.leaves_by_id.get(leave_id)

    def create(self, leave: Leave) -> int:
        self._id += 1
        self.leaves_by_id[self._id] = replace(leave, leave_id=self._id)
        return self._id

    def update_fields(self, leave_id: int, fields: dict[str, Any]) -> bool:
        if leave_id not in self.leaves_by_id:
            return False
        self.leaves_by_id[leave_id] = replace(self.leaves_by_id[leave_id], **fields)
        return True

    def list_leaves(self, *, user_id: Optional[int] = None, status: Optional[LeaveStatus] = None):
        items = [
            leave
            for leave in self.leaves_by_id.values()
            if (user_id is None or leave.user_id == user_id) and (status is None or leave.status == status)
        ]
        return sorted(items, key=lambda leave: leave.leave_id, reverse=True)

    def list_starting_between(self, start: date, end: date, *, user_id: Optional[int] = None):
        return [
            leave
            for leave in self.list_leaves(user_id=user_id)
            if start <= leave.start_date <= end
        ]


class InMemoryPolicies:
    def __init__(self, policies: Optional[list[Policy]] = None):
        self.policies_by_id: dict[int, Policy] = {p.policy_id: p for p in policies or []}
        self._id = max(self.policies_by_id, default=0)

    def get_by_id(self, policy_id: int) -> Optional[Policy]:
        return self.policies_by_id.get(policy_id)

    def create(self, policy: Policy) -> int:
        self._id += 1
        self.policies_by_id[self._id] = replace(policy, policy_id=self._id)
        return self._id

    def update_fields(self, policy_id: int, fields: dict[str, Any]) -> bool:
        if policy_id not in self.policies_by_id:
            return False
        self.policies_by_id[policy_id] = replace(self.policies_by_id[policy_id], **fields)
        return True

    def delete_by_id(self, policy_id: int) -> bool:
        return self.policies_by_id.pop(policy_id, None) is not None

    def list_all(self):
        return sorted(self.policies_by_id.values(), key=lambda p: (p.category.value, p.title))

    def count(self) -> int:
        return len(self.policies_by_id)


def make_user(user_id: int, *, role: Role = Role.USER, password: str = "Secret123", **kwargs) -> User:
    values = {
        "email": f"user{user_id}@example.com",
        "name": f"User {user_id}",
        "password_hash": generate_password_hash(password),
        "company_id": f"C{user_id:03d}",
    }
    values.update(kwargs)
    return User(user_id=user_id, role=role, **values)


@pytest.fixture
def users_repo():
    return InMemoryUsers()


@pytest.fixture
def projects_repo():
    return InMemoryProjects()


@pytest.fixture
def time_logs_repo():
    return InMemoryTimeLogs()


@pytest.fixture
def leaves_repo():
    return InMemoryLeaves()


@pytest.fixture
def policies_repo():
    return InMemoryPolicies()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "uploads", public_url="/uploads")
