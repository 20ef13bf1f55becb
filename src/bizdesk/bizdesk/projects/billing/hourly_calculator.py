from __future__ import annotations

from datetime import date

from ..model import Project
from .base import RevenueCalculator


class HourlyRevenueCalculator(RevenueCalculator):
    """hourly_rate x hours."""

    def revenue(self, project: Project, *, logged_hours: float, as_of: date) -> float:
        return project.hourly_rate * logged_hours

    def daily_revenue(self, project: Project, *, day: date, hours: float) -> float:
        return project.hourly_rate * hours
