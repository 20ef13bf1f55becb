from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ...core.enums import ProjectType
from ..model import Project
from .base import RevenueCalculator
from .hourly_calculator import HourlyRevenueCalculator
from .one_time_calculator import OneTimeRevenueCalculator
from .retainer_calculator import RetainerRevenueCalculator


@dataclass
class RevenueCalculatorFactory:
    """Factory Pattern: choose the calculator for a project's billing model."""

    def for_project(self, project: Project) -> RevenueCalculator:
        if project.project_type == ProjectType.HOURLY:
            return HourlyRevenueCalculator()
        if project.project_type == ProjectType.RETAINER:
            return RetainerRevenueCalculator()
        return OneTimeRevenueCalculator()

    def revenue(self, project: Project, *, logged_hours: float, as_of: date) -> float:
        return self.for_project(project).revenue(project, logged_hours=logged_hours, as_of=as_of)

    def daily_revenue(self, project: Project, *, day: date, hours: float) -> float:
        return self.for_project(project).daily_revenue(project, day=day, hours=hours)
