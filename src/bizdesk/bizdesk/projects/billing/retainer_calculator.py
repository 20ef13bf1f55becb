from __future__ import annotations

from datetime import date
from typing import Optional

from ...common.datetime_utils import as_date, months_active
from ...core.constants import RETAINER_DAYS_PER_MONTH
from ...core.enums import RevenueType
from ..model import Project
from .base import RevenueCalculator


class RetainerRevenueCalculator(RevenueCalculator):
    """Monthly retainer.

    Fixed: monthly_amount for every calendar month the project is active,
    accrued daily as monthly_amount / 30. Hours-based: monthly_amount is
    charged per logged hour.
    """

    def revenue(self, project: Project, *, logged_hours: float, as_of: date) -> float:
        if project.revenue_type == RevenueType.HOURS_BASED:
            return project.monthly_amount * logged_hours
        return project.monthly_amount * months_active(project.start_date, project.end_date, as_of)

    def daily_revenue(self, project: Project, *, day: date, hours: float) -> float:
        if project.revenue_type == RevenueType.HOURS_BASED:
            return project.monthly_amount * hours
        if not self.is_active_on(project, day):
            return 0.0
        return project.monthly_amount / RETAINER_DAYS_PER_MONTH

    @staticmethod
    def is_active_on(project: Project, day: date) -> bool:
        # projects without a start date count from the day they were created
        start: Optional[date] = project.start_date or as_date(project.created_at)
        if start is None or day < start:
            return False
        return project.end_date is None or day <= project.end_date
