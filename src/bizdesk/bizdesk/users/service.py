from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping, Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import next_anniversary, now_local, one_month_before, parse_optional_date
from ..common.validators import (
    optional_company_id,
    optional_enum,
    require_email,
    require_enum,
    require_min_length,
    require_non_negative,
    require_strong_password,
)
from ..core.constants import BIRTHDAY_WINDOW_DAYS, COMPANY_ID_PREFIX, PASSWORD_RESET_MAX_AGE
from ..core.enums import Department, LeaveType, Role, UserPosition
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..projects.repository import TimeLogRepository
from .model import NewUser, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_COMPANY_NUMBER_RE = re.compile(r"^C(\d+)$", re.IGNORECASE)
_RESET_SALT = "password-reset"


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


def next_company_id(existing: Iterable[str]) -> str:
    """``C%03d`` one above the highest numeric company id in use."""
    highest = 0
    for value in existing:
        m = _COMPANY_NUMBER_RE.match(value or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{COMPANY_ID_PREFIX}{highest + 1:03d}"


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You don't have permission to do this")


def _password_matches(user: User, password: str) -> bool:
    try:
        return check_password_hash(user.password_hash, password or "")
    except (TypeError, ValueError):
        # placeholder or corrupted hashes never match
        return False


def _parse_dob(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        dob = parse_optional_date(str(value))
    except ValueError:
        raise ValidationError("Date of birth must be a date (YYYY-MM-DD)")
    return dob


def _clean_leave_allocation(raw: Any) -> Optional[dict]:
    if raw in (None, "", {}):
        return None
    if not isinstance(raw, Mapping):
        raise ValidationError("Leave allocation must be an object")
    return {
        require_enum(k, LeaveType, "leave type").value: require_non_negative(v, "Leave allocation")
        for k, v in raw.items()
    }


def _hours_total(logs) -> float:
    return float(sum(log.hours for log in logs))


class AuthService:
    """Use case: login, administrator self-registration, password change and reset."""

    def __init__(
        self,
        users: UserRepository,
        *,
        parent_pin: str,
        secret_key: str = "dev-secret-key",
        reset_max_age: int = PASSWORD_RESET_MAX_AGE,
    ):
        self._users = users
        self._parent_pin = str(parent_pin)
        self._reset_serializer = URLSafeTimedSerializer(secret_key, salt=_RESET_SALT)
        self._reset_max_age = reset_max_age

    def authenticate(self, email: str, password: str, *, now: Optional[datetime] = None) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or user.deleted_at is not None or not _password_matches(user, password):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Your account has been deactivated. Please contact an administrator.")

        self._users.touch_last_login(user.user_id, now or now_local())
        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
        parent_pin: str,
        department: Optional[str] = None,
        phone: str = "",
    ) -> User:
        """Public sign-up; only holders of the parent PIN may create (admin) accounts."""
        if (parent_pin or "").strip() != self._parent_pin:
            raise AuthorizationError("Invalid parent PIN. Only administrators can create accounts.")

        name = require_min_length((name or "").strip(), "Name", 2)
        email = require_email(email)
        require_min_length(password, "Password", 6)
        if password != confirm_password:
            raise ValidationError("Passwords don't match")
        if self._users.get_by_email(email):
            raise ValidationError("This email is already registered")

        user_id = self._users.create(
            NewUser(
                email=email,
                name=name,
                password_hash=generate_password_hash(password),
                role=Role.ADMIN,
                department=optional_enum(department, Department, "department"),
                phone=(phone or "").strip(),
                company_id=next_company_id(self._users.list_company_ids()),
            )
        )
        logger.info("Administrator account %s registered (%s)", user_id, email)
        return self._users.get_by_id(user_id)

    def change_password(
        self, *, user_id: int, current_password: str, new_password: str, confirm_password: str
    ) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not _password_matches(user, current_password):
            raise AuthenticationError("Current password is incorrect")
        require_strong_password(new_password, confirm_password)
        if new_password == current_password:
            raise ValidationError("New password must be different from the current password")

        self._users.update_fields(user.user_id, {"password_hash": generate_password_hash(new_password)})
        logger.info("Password changed for user %s", user.user_id)

    # ---- password reset ----

    @staticmethod
    def _reset_fingerprint(user: User) -> str:
        # a new hash has a new salt, so a used token stops matching
        return (user.password_hash or "")[-16:]

    def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a signed, expiring reset token, or None when no active account uses ``email``.

        Callers answer the same way in both cases so the endpoint does not reveal
        which emails are registered.
        """
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or user.deleted_at is not None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive email")
            return None

        token = self._reset_serializer.dumps({"uid": user.user_id, "fp": self._reset_fingerprint(user)})
        logger.info("Password reset token issued for user %s", user.user_id)
        return token

    def reset_password(self, *, token: str, new_password: str, confirm_password: str) -> None:
        try:
            payload = self._reset_serializer.loads(token or "", max_age=self._reset_max_age)
        except BadSignature:
            raise ValidationError("This reset link is invalid or has expired")

        user = self._users.get_by_id(int(payload.get("uid", 0)))
        if not user or not user.is_active or user.deleted_at is not None:
            raise ValidationError("This reset link is invalid or has expired")
        if payload.get("fp") != self._reset_fingerprint(user):
            raise ValidationError("This reset link has already been used")

        require_strong_password(new_password, confirm_password)
        self._users.update_fields(user.user_id, {"password_hash": generate_password_hash(new_password)})
        logger.info("Password reset for user %s", user.user_id)


class UserService:
    """Use case: manage users (admin) and per-user views."""

    def __init__(self, users: UserRepository, time_logs: Optional[TimeLogRepository] = None):
        self._users = users
        self._time_logs = time_logs

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def _ensure_email_free(self, email: str, *, exclude_user_id: Optional[int] = None) -> None:
        other = self._users.get_by_email(email)
        if other and other.user_id != exclude_user_id:
            raise ValidationError("This email is already registered")

    def _ensure_company_id_free(self, company_id: Optional[str], *, current: Optional[str] = None) -> None:
        if company_id and company_id != current and company_id in set(self._users.list_company_ids()):
            raise ValidationError(f"Company ID {company_id} is already in use")

    def create_user(self, *, current_role: Role, data: Mapping[str, Any]) -> User:
        _require_admin(current_role)

        name = require_min_length((data.get("name") or "").strip(), "Name", 2)
        email = require_email(data.get("email"))
        password = require_strong_password(data.get("password") or "", data.get("confirm_password") or "")
        self._ensure_email_free(email)

        company_id = optional_company_id(data.get("company_id"))
        if company_id:
            self._ensure_company_id_free(company_id)
        else:
            company_id = next_company_id(self._users.list_company_ids())

        user_id = self._users.create(
            NewUser(
                email=email,
                name=name,
                password_hash=generate_password_hash(password),
                role=require_enum(data.get("role") or Role.USER.value, Role, "role"),
                position=optional_enum(data.get("position"), UserPosition, "position"),
                department=optional_enum(data.get("department"), Department, "department"),
                phone=(data.get("phone") or "").strip(),
                company_id=company_id,
                hourly_rate=require_non_negative(data.get("hourly_rate"), "Hourly rate"),
                monthly_salary=require_non_negative(data.get("monthly_salary"), "Monthly salary"),
                date_of_birth=_parse_dob(data.get("date_of_birth")),
                leave_allocation=_clean_leave_allocation(data.get("leave_allocation")),
            )
        )
        logger.info("User %s created (%s, %s)", user_id, email, company_id)
        return self.get_user(user_id)

    def list_users(self, *, current_role: Role) -> list[User]:
        _require_admin(current_role)
        return list(self._users.list_all())

    def update_user(
        self,
        *,
        current_role: Role,
        user_id: int,
        data: Mapping[str, Any],
        current_user_id: Optional[int] = None,
    ) -> User:
        _require_admin(current_role)
        user = self.get_user(user_id)
        is_self = current_user_id is not None and user.user_id == int(current_user_id)
        fields: dict[str, Any] = {}

        if "name" in data:
            fields["name"] = require_min_length((data.get("name") or "").strip(), "Name", 2)
        if "email" in data:
            fields["email"] = require_email(data.get("email"))
            self._ensure_email_free(fields["email"], exclude_user_id=user.user_id)
        if "role" in data:
            fields["role"] = require_enum(data.get("role"), Role, "role")
            if is_self and fields["role"] != Role.ADMIN:
                raise ValidationError("You cannot remove your own admin role")
        if "position" in data:
            fields["position"] = optional_enum(data.get("position"), UserPosition, "position")
        if "department" in data:
            fields["department"] = optional_enum(data.get("department"), Department, "department")
        if "phone" in data:
            fields["phone"] = (data.get("phone") or "").strip()
        if "hourly_rate" in data:
            fields["hourly_rate"] = require_non_negative(data.get("hourly_rate"), "Hourly rate")
        if "monthly_salary" in data:
            fields["monthly_salary"] = require_non_negative(data.get("monthly_salary"), "Monthly salary")
        if "company_id" in data:
            fields["company_id"] = optional_company_id(data.get("company_id"))
            self._ensure_company_id_free(fields["company_id"], current=user.company_id)
        if "date_of_birth" in data:
            fields["date_of_birth"] = _parse_dob(data.get("date_of_birth"))
        if "leave_allocation" in data:
            fields["leave_allocation"] = _clean_leave_allocation(data.get("leave_allocation"))
        if "is_active" in data:
            fields["is_active"] = bool(data.get("is_active"))
            if is_self and not fields["is_active"]:
                raise ValidationError("You cannot deactivate your own account")
        if data.get("password"):
            require_min_length(data["password"], "Password", 6)
            fields["password_hash"] = generate_password_hash(data["password"])

        if fields:
            self._users.update_fields(user.user_id, fields)
        return self.get_user(user.user_id)

    def update_status(self, *, current_role: Role, current_user_id: int, user_id: int, is_active: bool) -> User:
        _require_admin(current_role)
        user = self.get_user(user_id)
        if user.user_id == int(current_user_id) and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        self._users.update_fields(user.user_id, {"is_active": bool(is_active)})
        logger.info("User %s %s", user.user_id, "activated" if is_active else "deactivated")
        return self.get_user(user.user_id)

    def delete_user(
        self, *, current_role: Role, current_user_id: int, user_id: int, now: Optional[datetime] = None
    ) -> None:
        """Soft delete: the account is deactivated and stamped, its history kept."""
        _require_admin(current_role)
        user = self.get_user(user_id)
        if user.user_id == int(current_user_id):
            raise ValidationError("You cannot delete your own account")

        self._users.update_fields(user.user_id, {"is_active": False, "deleted_at": now or now_local()})
        logger.info("User %s deleted", user.user_id)

    def list_by_role(self, role: Role) -> list[User]:
        return list(self._users.list_active(role=role))

    def list_active(self) -> list[User]:
        return list(self._users.list_active())

    def update_profile(self, *, current_user_id: int, current_role: Role, data: Mapping[str, Any]) -> User:
        """Self-service profile edit; only administrators may change their company id."""
        user = self.get_user(current_user_id)
        fields: dict[str, Any] = {}

        if "name" in data:
            fields["name"] = require_min_length((data.get("name") or "").strip(), "Name", 2)
        if "email" in data:
            fields["email"] = require_email(data.get("email"))
            self._ensure_email_free(fields["email"], exclude_user_id=user.user_id)
        if "phone" in data:
            fields["phone"] = (data.get("phone") or "").strip()
        if "department" in data:
            fields["department"] = optional_enum(data.get("department"), Department, "department")
        if "date_of_birth" in data:
            fields["date_of_birth"] = _parse_dob(data.get("date_of_birth"))
        if "company_id" in data:
            company_id = optional_company_id(data.get("company_id"))
            if company_id != user.company_id:
                if current_role != Role.ADMIN:
                    raise AuthorizationError("Company ID cannot be changed")
                self._ensure_company_id_free(company_id, current=user.company_id)
                fields["company_id"] = company_id

        if fields:
            self._users.update_fields(user.user_id, fields)
        return self.get_user(user.user_id)

    def assign_missing_company_ids(self, *, current_role: Role) -> list[dict]:
        """Give every user without a company id the next free one, oldest account first."""
        _require_admin(current_role)
        existing = list(self._users.list_company_ids())
        assigned: list[dict] = []
        for user in self._users.list_without_company_id():
            company_id = next_company_id(existing)
            self._users.update_fields(user.user_id, {"company_id": company_id})
            existing.append(company_id)
            assigned.append({"user_id": user.user_id, "name": user.name, "company_id": company_id})
        if assigned:
            logger.info("Assigned %s company ids", len(assigned))
        return assigned

    # ---- analytics ----

    def user_analytics(self, user_id: int, *, today: Optional[date] = None) -> dict:
        user = self.get_user(user_id)
        today = today or now_local().date()
        logs = list(self._time_logs.list_for_user(user.user_id)) if self._time_logs else []

        week_ago = today - timedelta(days=7)
        month_ago = one_month_before(today)
        by_work_type: dict[str, float] = {}
        for log in logs:
            by_work_type[log.work_type.value] = by_work_type.get(log.work_type.value, 0.0) + log.hours

        return {
            "user": user.to_public_dict(),
            "total_hours": _hours_total(logs),
            "this_week_hours": _hours_total(log for log in logs if log.work_date >= week_ago),
            "this_month_hours": _hours_total(log for log in logs if log.work_date >= month_ago),
            "projects_worked_on": len({log.project_id for log in logs}),
            "total_logs": len(logs),
            "hours_by_work_type": by_work_type,
            "recent_logs": [log.to_dict() for log in logs[:10]],
        }

    def team_analytics(self, *, current_role: Role) -> dict:
        _require_admin(current_role)
        users = list(self._users.list_all())
        departments: dict[str, int] = {}
        for user in users:
            if user.department:
                departments[user.department.value] = departments.get(user.department.value, 0) + 1

        return {
            "total_users": len(users),
            "active_users": sum(1 for u in users if u.is_active),
            "admin_users": sum(1 for u in users if u.role == Role.ADMIN),
            "team_members": sum(1 for u in users if u.role == Role.USER),
            "departments": departments,
            "recent_users": [u.to_public_dict() for u in users[:5]],
        }

    def upcoming_birthdays(self, *, today: Optional[date] = None, window_days: int = BIRTHDAY_WINDOW_DAYS) -> list[dict]:
        today = today or now_local().date()
        out: list[dict] = []
        for user in self._users.list_active():
            if not user.date_of_birth:
                continue
            upcoming = next_anniversary(user.date_of_birth, today)
            days_until = (upcoming - today).days
            if days_until > window_days:
                continue
            out.append(
                {
                    "user_id": user.user_id,
                    "name": user.name,
                    "department": user.department.value if user.department else None,
                    "profile_picture_url": user.profile_picture_url,
                    "date": upcoming.isoformat(),
                    "turning": upcoming.year - user.date_of_birth.year,
                    "days_until": days_until,
                    "is_today": days_until == 0,
                    "is_this_week": days_until <= 7,
                    "is_this_month": upcoming.year == today.year and upcoming.month == today.month,
                }
            )
        out.sort(key=lambda b: (b["days_until"], b["name"]))
        return out
