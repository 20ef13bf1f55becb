from __future__ import annotations

from datetime import date

from ...core.enums import RevenueType
from ..model import Project
from .base import RevenueCalculator


class OneTimeRevenueCalculator(RevenueCalculator):
    """Fixed: the agreed income. Hours-based: income is a per-hour figure.

    Fixed income is earned once and is not spread over days.
    """

    def revenue(self, project: Project, *, logged_hours: float, as_of: date) -> float:
        if project.revenue_type == RevenueType.HOURS_BASED:
            return project.income * logged_hours
        return project.income

    def daily_revenue(self, project: Project, *, day: date, hours: float) -> float:
        if project.revenue_type == RevenueType.HOURS_BASED:
            return project.income * hours
        return 0.0
