from __future__ import annotations

import math
import re
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_COMPANY_ID_RE = re.compile(r"^C\d{3,}$", re.IGNORECASE)


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_length_between(value: str, field_name: str, min_len: int, max_len: int) -> str:
    value = (value or "").strip()
    if len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    if len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError("Please enter a valid email address")
    return value


def require_non_negative(value, field_name: str) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} must be non-negative")
    return number


def require_between(value, field_name: str, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a number")
    if number < low:
        raise ValidationError(f"{field_name} must be at least {low:g}")
    if number > high:
        raise ValidationError(f"{field_name} cannot exceed {high:g}")
    return number


def require_enum(value, enum_cls: Type[E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}")


def optional_enum(value, enum_cls: Type[E], field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    return require_enum(value, enum_cls, field_name)


def require_strong_password(password: str, confirm: str) -> str:
    """At least 8 chars with one lowercase, one uppercase letter and one digit."""
    require_min_length(password, "Password", 8)
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        raise ValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    if password != confirm:
        raise ValidationError("Passwords don't match")
    return password


def optional_company_id(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    if not _COMPANY_ID_RE.match(value):
        raise ValidationError("Company ID must look like C001")
    return value.upper()
