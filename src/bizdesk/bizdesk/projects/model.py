from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import BillingFrequency, ProjectStatus, ProjectType, RevenueType, WorkType


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def normalize_developer_roles(raw: Optional[dict]) -> dict[str, list[int]]:
    """Coerce role assignments to ``{role: [user_id, ...]}``.

    Older records hold a single id instead of a list.
    """
    out: dict[str, list[int]] = {}
    for role, assigned in (raw or {}).items():
        if isinstance(assigned, (list, tuple, set)):
            out[str(role)] = [int(a) for a in assigned if a not in (None, "")]
        elif assigned not in (None, ""):
            out[str(role)] = [int(assigned)]
        else:
            out[str(role)] = []
    return out


@dataclass(frozen=True)
class Project:
    """Domain entity: a client project and its billing model.

    ``costs`` and ``estimated_hours`` are keyed by cost category value;
    ``developer_roles`` maps a developer role value to assigned user ids.
    """

    project_id: int
    name: str
    status: ProjectStatus = ProjectStatus.PLANNING
    project_type: ProjectType = ProjectType.ONE_TIME
    revenue_type: RevenueType = RevenueType.FIXED
    billing_frequency: BillingFrequency = BillingFrequency.MONTHLY
    description: str = ""
    client: str = ""
    income: float = 0.0
    monthly_amount: float = 0.0
    hourly_rate: float = 0.0
    costs: dict = field(default_factory=dict)
    estimated_hours: dict = field(default_factory=dict)
    developer_roles: dict = field(default_factory=dict)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_logged_hours: float = 0.0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def total_costs(self) -> float:
        return float(sum(float(v or 0) for v in self.costs.values()))

    @property
    def total_estimated_hours(self) -> float:
        return float(sum(float(v or 0) for v in self.estimated_hours.values()))

    def assigned_user_ids(self) -> set[int]:
        return {uid for ids in self.developer_roles.values() for uid in ids}

    def to_dict(self) -> dict:
        return {
            "id": self.project_id,
            "name": self.name,
            "description": self.description,
            "client": self.client,
            "status": self.status.value,
            "project_type": self.project_type.value,
            "revenue_type": self.revenue_type.value,
            "billing_frequency": self.billing_frequency.value,
            "income": self.income,
            "monthly_amount": self.monthly_amount,
            "hourly_rate": self.hourly_rate,
            "costs": dict(self.costs),
            "estimated_hours": dict(self.estimated_hours),
            "developer_roles": {k: list(v) for k, v in self.developer_roles.items()},
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "total_logged_hours": self.total_logged_hours,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class TimeLog:
    """Hours a user worked on a project on one day."""

    time_log_id: int
    project_id: int
    user_id: int
    work_type: WorkType
    hours: float
    work_date: date
    description: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.time_log_id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "work_type": self.work_type.value,
            "hours": self.hours,
            "date": self.work_date.isoformat(),
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
