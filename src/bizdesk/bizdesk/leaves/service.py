from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local, parse_optional_date, year_bounds
from ..common.validators import require_between, require_enum, require_length_between
from ..core.constants import LEAVE_REASON_MAX, LEAVE_REASON_MIN, MAX_LEAVE_DAYS, MIN_LEAVE_DAYS, REMARKS_MAX
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import (
    AuthorizationError,
    LeaveBalanceExceededError,
    NotFoundError,
    ValidationError,
)
from ..core.labels import label_for
from ..users.model import User
from ..users.repository import UserRepository
from .balance import compute_balance, excess_days, inclusive_days, salary_deduction
from .model import Leave, LeaveBalance
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


@dataclass(frozen=True)
class LeaveApplication:
    """Outcome of applying: the stored leave plus any confirmed overdraw."""

    leave: Leave
    excess_days: float = 0.0
    salary_deduction: float = 0.0


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You don't have permission to do this")


def _require_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        parsed = parse_optional_date(None if value is None else str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    if parsed is None:
        raise ValidationError(f"{field_name} is required")
    return parsed


class LeaveService:
    def __init__(self, leaves: LeaveRepository, users: UserRepository):
        self._leaves = leaves
        self._users = users

    def _get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_leave(self, leave_id: int) -> Leave:
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave not found")
        return leave

    def _balance_for(self, user: User, year: int) -> LeaveBalance:
        start, end = year_bounds(year)
        leaves = self._leaves.list_starting_between(start, end, user_id=user.user_id)
        return compute_balance(user.leave_allocation, leaves, year)

    def get_balance(self, user_id: int, *, year: Optional[int] = None) -> LeaveBalance:
        user = self._get_user(user_id)
        return self._balance_for(user, year or now_local().year)

    def can_apply(self, user_id: int, leave_type: LeaveType, duration: float, *, year: Optional[int] = None) -> bool:
        balance = self.get_balance(user_id, year=year)
        return balance.remaining[LeaveType(leave_type).value] >= float(duration)

    def apply_for_leave(
        self, *, user_id: int, data: Mapping[str, Any], confirm_excess: bool = False
    ) -> LeaveApplication:
        user = self._get_user(user_id)

        leave_type = require_enum(data.get("leave_type"), LeaveType, "leave type")
        start = _require_date(data.get("start_date"), "Start date")
        end = _require_date(data.get("end_date"), "End date")
        if end < start:
            raise ValidationError("End date must be after start date")

        raw_duration = data.get("duration")
        if raw_duration in (None, ""):
            raw_duration = inclusive_days(start, end)
        duration = require_between(raw_duration, "Duration", MIN_LEAVE_DAYS, MAX_LEAVE_DAYS)
        if not (duration * 2).is_integer():
            raise ValidationError("Duration must be in half-day steps")
        reason = require_length_between(data.get("reason"), "Reason", LEAVE_REASON_MIN, LEAVE_REASON_MAX)

        remaining = self._balance_for(user, start.year).remaining[leave_type.value]
        excess = excess_days(remaining, duration)
        deduction = salary_deduction(user.monthly_salary, excess)
        if excess > 0 and not confirm_excess:
            raise LeaveBalanceExceededError(
                f"You are applying for {duration:g} days of {label_for(leave_type)}, "
                f"but you only have {max(remaining, 0):g} days remaining.",
                remaining=remaining,
                excess_days=excess,
                salary_deduction=deduction,
            )

        leave_id = self._leaves.create(
            Leave(
                leave_id=0,
                user_id=user.user_id,
                user_name=user.name,
                company_id=user.company_id,
                leave_type=leave_type,
                start_date=start,
                end_date=end,
                duration=duration,
                reason=reason,
                status=LeaveStatus.PENDING,
            )
        )
        if excess > 0:
            logger.info(
                "Leave %s for user %s exceeds balance by %s days (deduction %.2f)",
                leave_id,
                user.user_id,
                excess,
                deduction,
            )
        return LeaveApplication(leave=self.get_leave(leave_id), excess_days=excess, salary_deduction=deduction)

    def list_all(self, *, current_role: Role, status: Optional[str] = None) -> list[Leave]:
        _require_admin(current_role)
        wanted = require_enum(status, LeaveStatus, "status") if status and status != "all" else None
        return list(self._leaves.list_leaves(status=wanted))

    def list_for_user(self, user_id: int) -> list[Leave]:
        return list(self._leaves.list_leaves(user_id=int(user_id)))

    def list_pending(self, *, current_role: Role) -> list[Leave]:
        _require_admin(current_role)
        return list(self._leaves.list_leaves(status=LeaveStatus.PENDING))

    def decide(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        leave_id: int,
        status: str,
        remarks: str,
        now: Optional[datetime] = None,
    ) -> Leave:
        _require_admin(current_role)
        decision = require_enum(status, LeaveStatus, "status")
        if decision not in _DECISIONS:
            raise ValidationError("A leave can only be approved or rejected")
        remarks = require_length_between(remarks, "Remarks", 1, REMARKS_MAX)

        leave = self.get_leave(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("This leave has already been processed")

        admin = self._get_user(admin_user_id)
        self._leaves.update_fields(
            leave.leave_id,
            {
                "status": decision,
                "approved_by": admin.user_id,
                "approved_by_name": admin.name,
                "approved_at": now or now_local(),
                "remarks": remarks,
            },
        )
        logger.info("Leave %s %s by user %s", leave.leave_id, decision.value, admin.user_id)
        return self.get_leave(leave.leave_id)

    def cancel(self, *, leave_id: int, user_id: int) -> Leave:
        leave = self.get_leave(leave_id)
        if leave.user_id != int(user_id):
            raise AuthorizationError("You can only cancel your own leaves")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("You can only cancel pending leaves")

        self._leaves.update_fields(leave.leave_id, {"status": LeaveStatus.CANCELLED})
        return self.get_leave(leave.leave_id)

    def statistics(self, *, current_role: Role, year: Optional[int] = None) -> dict:
        _require_admin(current_role)
        year = year or now_local().year
        start, end = year_bounds(year)
        leaves = list(self._leaves.list_starting_between(start, end))

        stats: dict[str, Any] = {"year": year, "total": len(leaves)}
        for s in LeaveStatus:
            stats[s.value] = sum(1 for leave in leaves if leave.status == s)
        stats["by_type"] = {t.value: sum(1 for leave in leaves if leave.leave_type == t) for t in LeaveType}
        return stats
