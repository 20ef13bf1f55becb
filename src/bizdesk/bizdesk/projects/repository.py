from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from .model import Project, TimeLog


class ProjectRepository(Protocol):
    def get_by_id(self, project_id: int) -> Optional[Project]:
        """Fetch a project whether or not it is active."""

        raise NotImplementedError

    def create(self, project: Project) -> int:
        raise NotImplementedError

    def update_fields(self, project_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def list_active(self) -> Sequence[Project]:
        """Active projects, newest first."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Project]:
        raise NotImplementedError


class TimeLogRepository(Protocol):
    def get_by_id(self, time_log_id: int) -> Optional[TimeLog]:
        raise NotImplementedError

    def create(self, log: TimeLog) -> int:
        raise NotImplementedError

    def update_fields(self, time_log_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, time_log_id: int) -> bool:
        raise NotImplementedError

    def list_for_project(self, project_id: int) -> Sequence[TimeLog]:
        """Newest work date first."""

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[TimeLog]:
        """Newest work date first."""

        raise NotImplementedError

    def list_between(
        self, start: date, end: date, *, project_id: Optional[int] = None
    ) -> Sequence[TimeLog]:
        """Logs with ``start <= work_date <= end``, newest first."""

        raise NotImplementedError

    def list_all(self) -> Sequence[TimeLog]:
        raise NotImplementedError

    def sum_hours_for_project(self, project_id: int) -> float:
        raise NotImplementedError
