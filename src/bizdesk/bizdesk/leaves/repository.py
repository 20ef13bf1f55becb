from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import Leave


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def create(self, leave: Leave) -> int:
        raise NotImplementedError

    def update_fields(self, leave_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
    ) -> Sequence[Leave]:
        """Newest application first."""

        raise NotImplementedError

    def list_starting_between(
        self, start: date, end: date, *, user_id: Optional[int] = None
    ) -> Sequence[Leave]:
        raise NotImplementedError
