from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from ..model import Project


class RevenueCalculator(ABC):
    """Calculator interface (Strategy Pattern for project billing models)."""

    @abstractmethod
    def revenue(self, project: Project, *, logged_hours: float, as_of: date) -> float:
        """Revenue earned by a project given the hours logged against it."""

        raise NotImplementedError

    @abstractmethod
    def daily_revenue(self, project: Project, *, day: date, hours: float) -> float:
        """Revenue attributed to a single day with ``hours`` logged that day."""

        raise NotImplementedError
