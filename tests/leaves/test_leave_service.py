from __future__ import annotations

from datetime import date, datetime

import pytest

from conftest import InMemoryLeaves, InMemoryUsers, make_user
from src.bizdesk.bizdesk.core.enums import LeaveStatus, LeaveType, Role
from src.bizdesk.bizdesk.core.exceptions import (
    AuthorizationError,
    LeaveBalanceExceededError,
    ValidationError,
)
from src.bizdesk.bizdesk.leaves.balance import compute_balance, effective_allocation, excess_days, salary_deduction
from src.bizdesk.bizdesk.leaves.model import Leave
from src.bizdesk.bizdesk.leaves.service import LeaveService


def _leave(leave_id, *, user_id=2, leave_type=LeaveType.SICK, start=date(2026, 3, 2), duration=2.0, status=LeaveStatus.APPROVED):
    return Leave(
        leave_id=leave_id,
        user_id=user_id,
        user_name=f"User {user_id}",
        leave_type=leave_type,
        start_date=start,
        end_date=start,
        duration=duration,
        reason="Feeling unwell today",
        status=status,
    )


def _application(**overrides):
    data = {
        "leave_type": "sick",
        "start_date": "2026-04-06",
        "end_date": "2026-04-07",
        "duration": 2,
        "reason": "Medical appointment",
    }
    data.update(overrides)
    return data


@pytest.fixture
def users():
    return InMemoryUsers([make_user(1, role=Role.ADMIN, name="Admin"), make_user(2, monthly_salary=4400)])


def test_custom_allocation_falls_back_to_defaults():
    assert effective_allocation({"annual": 15}) == {"sick": 7, "casual": 7, "annual": 15}
    assert effective_allocation(None) == {"sick": 7, "casual": 7, "annual": 10}


def test_balance_counts_only_approved_leaves_of_the_year():
    leaves = [
        _leave(1, duration=3),
        _leave(2, duration=2, status=LeaveStatus.PENDING),
        _leave(3, duration=5, start=date(2025, 12, 30)),
        _leave(4, duration=8, leave_type=LeaveType.CASUAL),
    ]
    balance = compute_balance(None, leaves, 2026)

    assert balance.used == {"sick": 3, "casual": 8, "annual": 0}
    assert balance.remaining == {"sick": 4, "casual": -1, "annual": 10}


def test_excess_and_deduction():
    assert excess_days(2, 5) == 3
    assert excess_days(-1, 2) == 2
    assert excess_days(5, 2) == 0
    assert salary_deduction(4400, 3) == 600
    assert salary_deduction(4400, 0) == 0


def test_apply_within_balance_creates_pending_leave(users):
    leaves = InMemoryLeaves()
    svc = LeaveService(leaves, users)

    result = svc.apply_for_leave(user_id=2, data=_application())

    assert result.leave.status == LeaveStatus.PENDING
    assert result.leave.duration == 2
    assert result.leave.company_id == "C002"
    assert result.excess_days == 0
    assert svc.can_apply(2, LeaveType.SICK, 7, year=2026) is True


def test_apply_beyond_balance_needs_confirmation(users):
    leaves = InMemoryLeaves([_leave(1, duration=6)])
    svc = LeaveService(leaves, users)

    with pytest.raises(LeaveBalanceExceededError) as exc:
        svc.apply_for_leave(user_id=2, data=_application(duration=3, end_date="2026-04-08"))
    assert exc.value.remaining == 1
    assert exc.value.excess_days == 2
    assert exc.value.salary_deduction == 400

    result = svc.apply_for_leave(
        user_id=2, data=_application(duration=3, end_date="2026-04-08"), confirm_excess=True
    )
    assert result.excess_days == 2
    assert result.salary_deduction == 400


def test_apply_validates_dates_duration_and_reason(users):
    svc = LeaveService(InMemoryLeaves(), users)

    with pytest.raises(ValidationError, match="after start"):
        svc.apply_for_leave(user_id=2, data=_application(end_date="2026-04-01"))
    with pytest.raises(ValidationError):
        svc.apply_for_leave(user_id=2, data=_application(duration=31))
    with pytest.raises(ValidationError):
        svc.apply_for_leave(user_id=2, data=_application(reason="short"))
    with pytest.raises(ValidationError):
        svc.apply_for_leave(user_id=2, data=_application(leave_type="holiday"))


def test_missing_duration_defaults_to_inclusive_days(users):
    svc = LeaveService(InMemoryLeaves(), users)
    result = svc.apply_for_leave(user_id=2, data=_application(duration=None))
    assert result.leave.duration == 2


def test_decide_records_admin_and_only_once(users):
    leaves = InMemoryLeaves([_leave(1, status=LeaveStatus.PENDING)])
    svc = LeaveService(leaves, users)
    now = datetime(2026, 3, 1, 10, 0)

    with pytest.raises(AuthorizationError):
        svc.decide(current_role=Role.USER, admin_user_id=2, leave_id=1, status="approved", remarks="ok")
    with pytest.raises(ValidationError):
        svc.decide(current_role=Role.ADMIN, admin_user_id=1, leave_id=1, status="approved", remarks="  ")
    with pytest.raises(ValidationError):
        svc.decide(current_role=Role.ADMIN, admin_user_id=1, leave_id=1, status="cancelled", remarks="no")

    leave = svc.decide(
        current_role=Role.ADMIN, admin_user_id=1, leave_id=1, status="approved", remarks="Get well", now=now
    )
    assert leave.status == LeaveStatus.APPROVED
    assert leave.approved_by == 1
    assert leave.approved_by_name == "Admin"
    assert leave.approved_at == now

    with pytest.raises(ValidationError, match="already been processed"):
        svc.decide(current_role=Role.ADMIN, admin_user_id=1, leave_id=1, status="rejected", remarks="late")


def test_cancel_only_own_pending_leave(users):
    leaves = InMemoryLeaves([_leave(1, status=LeaveStatus.PENDING), _leave(2, status=LeaveStatus.APPROVED)])
    svc = LeaveService(leaves, users)

    with pytest.raises(AuthorizationError):
        svc.cancel(leave_id=1, user_id=3)
    with pytest.raises(ValidationError):
        svc.cancel(leave_id=2, user_id=2)

    assert svc.cancel(leave_id=1, user_id=2).status == LeaveStatus.CANCELLED


def test_statistics_for_year(users):
    leaves = InMemoryLeaves(
        [
            _leave(1),
            _leave(2, status=LeaveStatus.PENDING, leave_type=LeaveType.ANNUAL),
            _leave(3, start=date(2025, 6, 1)),
        ]
    )
    stats = LeaveService(leaves, users).statistics(current_role=Role.ADMIN, year=2026)

    assert stats["total"] == 2
    assert stats["approved"] == 1
    assert stats["pending"] == 1
    assert stats["by_type"] == {"sick": 1, "casual": 0, "annual": 1}


def test_list_all_filters_by_status(users):
    leaves = InMemoryLeaves([_leave(1), _leave(2, status=LeaveStatus.PENDING)])
    svc = LeaveService(leaves, users)

    assert [leave.leave_id for leave in svc.list_all(current_role=Role.ADMIN, status="pending")] == [2]
    assert len(svc.list_all(current_role=Role.ADMIN, status="all")) == 2
    assert [leave.leave_id for leave in svc.list_pending(current_role=Role.ADMIN)] == [2]


def test_apply_rejects_nan_and_off_step_durations(users):
    leaves = InMemoryLeaves([_leave(1, duration=7)])
    svc = LeaveService(leaves, users)

    # the sick balance is used up, so a NaN slipping through would skip the overdraw check
    with pytest.raises(ValidationError, match="must be a number"):
        svc.apply_for_leave(user_id=2, data=_application(duration="nan"))
    with pytest.raises(ValidationError, match="half-day"):
        svc.apply_for_leave(user_id=2, data=_application(duration=0.75), confirm_excess=True)

    result = svc.apply_for_leave(user_id=2, data=_application(duration=1.5), confirm_excess=True)
    assert result.leave.duration == 1.5
