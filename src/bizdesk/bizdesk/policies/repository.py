from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import Policy


class PolicyRepository(Protocol):
    def get_by_id(self, policy_id: int) -> Optional[Policy]:
        raise NotImplementedError

    def create(self, policy: Policy) -> int:
        raise NotImplementedError

    def update_fields(self, policy_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, policy_id: int) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[Policy]:
        """Ordered by category, then title."""

        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
