from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import NewUser, User


class UserRepository(Protocol):
    """Repository interface for users.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create(self, user: NewUser) -> int:
        raise NotImplementedError

    def update_fields(self, user_id: int, fields: dict[str, Any]) -> bool:
        """Partial update; keys are column names of the users table."""

        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        """All users, newest first."""

        raise NotImplementedError

    def list_active(self, *, role: Optional[Role] = None) -> Sequence[User]:
        """Active users ordered by name."""

        raise NotImplementedError

    def list_company_ids(self) -> Sequence[str]:
        raise NotImplementedError

    def list_without_company_id(self) -> Sequence[User]:
        """Users lacking a company id, oldest first."""

        raise NotImplementedError

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        raise NotImplementedError
