from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import Department, Role, UserPosition


@dataclass(frozen=True)
class User:
    """Domain entity: an employee account.

    Plain data only; persistence lives in the repository layer.
    """

    user_id: int
    email: str
    name: str
    password_hash: str
    role: Role
    position: Optional[UserPosition] = None
    department: Optional[Department] = None
    phone: str = ""
    company_id: Optional[str] = None
    hourly_rate: float = 0.0
    monthly_salary: float = 0.0
    is_active: bool = True
    profile_picture_url: Optional[str] = None
    profile_picture_path: Optional[str] = None
    date_of_birth: Optional[date] = None
    leave_allocation: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_public_dict(self) -> dict:
        """Serializable view without credentials."""
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "position": self.position.value if self.position else None,
            "department": self.department.value if self.department else None,
            "phone": self.phone or "",
            "company_id": self.company_id,
            "hourly_rate": self.hourly_rate,
            "monthly_salary": self.monthly_salary,
            "is_active": self.is_active,
            "profile_picture_url": self.profile_picture_url,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }


@dataclass(frozen=True)
class NewUser:
    """Validated input for creating a user record."""

    email: str
    name: str
    password_hash: str
    role: Role
    position: Optional[UserPosition] = None
    department: Optional[Department] = None
    phone: str = ""
    company_id: Optional[str] = None
    hourly_rate: float = 0.0
    monthly_salary: float = 0.0
    date_of_birth: Optional[date] = None
    leave_allocation: Optional[dict] = field(default=None)
