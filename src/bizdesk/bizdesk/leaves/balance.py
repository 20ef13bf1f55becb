"""Leave balance arithmetic.

Pure functions: no repositories, no clock.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping, Optional

from ..core.constants import DEFAULT_LEAVE_ALLOCATION, WORKING_DAYS_IN_MONTH
from ..core.enums import LeaveStatus, LeaveType
from .model import Leave, LeaveBalance


def inclusive_days(start: date, end: date) -> int:
    """Calendar days from start to end, both included."""
    return (end - start).days + 1


def effective_allocation(allocation: Optional[Mapping]) -> dict[str, float]:
    """Per-type allocation; types missing from a custom allocation fall back to the defaults."""
    out = {t.value: float(days) for t, days in DEFAULT_LEAVE_ALLOCATION.items()}
    for key, days in (allocation or {}).items():
        key = key.value if isinstance(key, LeaveType) else str(key)
        if key in out and days is not None:
            out[key] = float(days)
    return out


def compute_balance(allocation: Optional[Mapping], leaves: Iterable[Leave], year: int) -> LeaveBalance:
    """allocation - approved days for leaves starting in ``year``; remaining may go negative."""
    alloc = effective_allocation(allocation)
    used = {t.value: 0.0 for t in LeaveType}
    for leave in leaves:
        if leave.status == LeaveStatus.APPROVED and leave.start_date.year == year:
            used[leave.leave_type.value] += float(leave.duration)
    remaining = {t: alloc[t] - used[t] for t in alloc}
    return LeaveBalance(year=year, allocation=alloc, used=used, remaining=remaining)


def excess_days(remaining: float, requested: float) -> float:
    """Days beyond what is left; a negative balance does not count twice."""
    return max(0.0, float(requested) - max(0.0, float(remaining)))


def salary_deduction(monthly_salary: float, excess: float, working_days: int = WORKING_DAYS_IN_MONTH) -> float:
    if excess <= 0 or working_days <= 0:
        return 0.0
    return float(excess) * (float(monthly_salary or 0) / working_days)
