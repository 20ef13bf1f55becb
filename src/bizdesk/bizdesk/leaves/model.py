from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_date_range
from ..core.enums import LeaveStatus, LeaveType
from ..core.labels import label_for


@dataclass(frozen=True)
class Leave:
    """A leave application and, once decided, who decided it."""

    leave_id: int
    user_id: int
    user_name: str
    leave_type: LeaveType
    start_date: date
    end_date: date
    duration: float
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    company_id: Optional[str] = None
    approved_by: Optional[int] = None
    approved_by_name: Optional[str] = None
    approved_at: Optional[datetime] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "company_id": self.company_id,
            "leave_type": self.leave_type.value,
            "leave_type_label": label_for(self.leave_type),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "date_range": format_date_range(self.start_date, self.end_date),
            "duration": self.duration,
            "reason": self.reason,
            "status": self.status.value,
            "approved_by": self.approved_by,
            "approved_by_name": self.approved_by_name,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "remarks": self.remarks,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class LeaveBalance:
    year: int
    allocation: dict
    used: dict
    remaining: dict

    def to_dict(self) -> dict:
        return {"year": self.year, "allocation": self.allocation, "used": self.used, "remaining": self.remaining}
