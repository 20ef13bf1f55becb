from __future__ import annotations

from datetime import date, datetime

import pytest
from werkzeug.security import check_password_hash

from conftest import InMemoryTimeLogs, InMemoryUsers, make_user
from src.bizdesk.bizdesk.core.enums import Department, Role, WorkType
from src.bizdesk.bizdesk.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.bizdesk.bizdesk.projects.model import TimeLog
from src.bizdesk.bizdesk.users.service import AuthService, UserService, next_company_id


def _new_user_payload(**overrides):
    data = {
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "password": "Secret123",
        "confirm_password": "Secret123",
        "role": "user",
        "department": "web",
        "hourly_rate": "25",
        "monthly_salary": 4400,
    }
    data.update(overrides)
    return data


def test_next_company_id_skips_non_numeric_ids():
    assert next_company_id([]) == "C001"
    assert next_company_id(["C001", "C009", "X12", None]) == "C010"
    assert next_company_id(["C1200"]) == "C1201"


def test_authenticate_records_last_login():
    users = InMemoryUsers([make_user(1, password="Secret123")])
    now = datetime(2026, 3, 1, 9, 0)

    s_user = AuthService(users, parent_pin="1094").authenticate("USER1@example.com ", "Secret123", now=now)

    assert s_user.user_id == 1
    assert s_user.role == Role.USER
    assert users.last_logins[1] == now


def test_authenticate_rejects_wrong_password_and_deactivated_accounts():
    users = InMemoryUsers([make_user(1), make_user(2, is_active=False)])
    svc = AuthService(users, parent_pin="1094")

    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        svc.authenticate("user1@example.com", "wrong")
    with pytest.raises(AuthenticationError, match="deactivated"):
        svc.authenticate("user2@example.com", "Secret123")


def test_register_requires_parent_pin_and_creates_admin():
    users = InMemoryUsers([make_user(1, company_id="C004")])
    svc = AuthService(users, parent_pin="1094")

    with pytest.raises(AuthorizationError):
        svc.register(
            name="Boss", email="boss@example.com", password="secret1", confirm_password="secret1", parent_pin="0000"
        )

    user = svc.register(
        name="Boss", email="boss@example.com", password="secret1", confirm_password="secret1", parent_pin="1094"
    )
    assert user.role == Role.ADMIN
    assert user.company_id == "C005"


def test_register_rejects_duplicate_email():
    users = InMemoryUsers([make_user(1)])
    svc = AuthService(users, parent_pin="1094")

    with pytest.raises(ValidationError, match="already registered"):
        svc.register(
            name="Dup",
            email="user1@example.com",
            password="secret1",
            confirm_password="secret1",
            parent_pin="1094",
        )


def test_change_password_checks_current_and_strength():
    users = InMemoryUsers([make_user(1, password="Secret123")])
    svc = AuthService(users, parent_pin="1094")

    with pytest.raises(AuthenticationError):
        svc.change_password(user_id=1, current_password="nope", new_password="Better123", confirm_password="Better123")
    with pytest.raises(ValidationError):
        svc.change_password(user_id=1, current_password="Secret123", new_password="weak", confirm_password="weak")
    with pytest.raises(ValidationError, match="different"):
        svc.change_password(
            user_id=1, current_password="Secret123", new_password="Secret123", confirm_password="Secret123"
        )

    svc.change_password(user_id=1, current_password="Secret123", new_password="Better123", confirm_password="Better123")
    assert check_password_hash(users.get_by_id(1).password_hash, "Better123")


def test_password_reset_token_sets_new_password_once():
    users = InMemoryUsers([make_user(1, password="Secret123"), make_user(2, is_active=False)])
    svc = AuthService(users, parent_pin="1094", secret_key="test-secret")

    assert svc.request_password_reset("nobody@example.com") is None
    assert svc.request_password_reset("user2@example.com") is None

    token = svc.request_password_reset(" USER1@example.com")
    with pytest.raises(ValidationError):
        svc.reset_password(token=token, new_password="weak", confirm_password="weak")

    svc.reset_password(token=token, new_password="Better123", confirm_password="Better123")
    assert check_password_hash(users.get_by_id(1).password_hash, "Better123")

    with pytest.raises(ValidationError, match="already been used"):
        svc.reset_password(token=token, new_password="Other1234", confirm_password="Other1234")


def test_password_reset_rejects_tampered_foreign_and_expired_tokens():
    users = InMemoryUsers([make_user(1)])
    svc = AuthService(users, parent_pin="1094", secret_key="test-secret")
    token = svc.request_password_reset("user1@example.com")

    with pytest.raises(ValidationError, match="invalid or has expired"):
        svc.reset_password(token=token + "x", new_password="Better123", confirm_password="Better123")

    other_key = AuthService(users, parent_pin="1094", secret_key="another-secret")
    with pytest.raises(ValidationError, match="invalid or has expired"):
        other_key.reset_password(token=token, new_password="Better123", confirm_password="Better123")

    expired = AuthService(users, parent_pin="1094", secret_key="test-secret", reset_max_age=-1)
    with pytest.raises(ValidationError, match="invalid or has expired"):
        expired.reset_password(token=token, new_password="Better123", confirm_password="Better123")


def test_create_user_requires_admin():
    svc = UserService(InMemoryUsers())
    with pytest.raises(AuthorizationError):
        svc.create_user(current_role=Role.USER, data=_new_user_payload())


def test_create_user_assigns_company_id_and_normalizes_email():
    users = InMemoryUsers([make_user(1, role=Role.ADMIN, company_id="C002")])
    svc = UserService(users)

    user = svc.create_user(current_role=Role.ADMIN, data=_new_user_payload())

    assert user.email == "jane@example.com"
    assert user.company_id == "C003"
    assert user.department == Department.WEB
    assert user.hourly_rate == 25.0


def test_create_user_rejects_weak_password_and_taken_company_id():
    users = InMemoryUsers([make_user(1, company_id="C001")])
    svc = UserService(users)

    with pytest.raises(ValidationError, match="uppercase"):
        svc.create_user(
            current_role=Role.ADMIN, data=_new_user_payload(password="alllower1", confirm_password="alllower1")
        )
    with pytest.raises(ValidationError, match="already in use"):
        svc.create_user(current_role=Role.ADMIN, data=_new_user_payload(company_id="c001"))


def test_update_user_password_is_optional_but_checked():
    users = InMemoryUsers([make_user(2)])
    svc = UserService(users)

    updated = svc.update_user(current_role=Role.ADMIN, user_id=2, data={"name": "Renamed", "password": ""})
    assert updated.name == "Renamed"

    with pytest.raises(ValidationError):
        svc.update_user(current_role=Role.ADMIN, user_id=2, data={"password": "123"})


def test_admin_cannot_deactivate_or_delete_self():
    users = InMemoryUsers([make_user(1, role=Role.ADMIN), make_user(2)])
    svc = UserService(users)

    with pytest.raises(ValidationError):
        svc.update_status(current_role=Role.ADMIN, current_user_id=1, user_id=1, is_active=False)
    with pytest.raises(ValidationError):
        svc.delete_user(current_role=Role.ADMIN, current_user_id=1, user_id=1)

    svc.delete_user(current_role=Role.ADMIN, current_user_id=1, user_id=2, now=datetime(2026, 1, 1))
    deleted = users.get_by_id(2)
    assert deleted.is_active is False
    assert deleted.deleted_at == datetime(2026, 1, 1)


def test_update_user_cannot_deactivate_or_demote_self():
    users = InMemoryUsers([make_user(1, role=Role.ADMIN), make_user(2)])
    svc = UserService(users)

    with pytest.raises(ValidationError, match="deactivate your own"):
        svc.update_user(current_role=Role.ADMIN, current_user_id=1, user_id=1, data={"is_active": False})
    with pytest.raises(ValidationError, match="own admin role"):
        svc.update_user(current_role=Role.ADMIN, current_user_id=1, user_id=1, data={"role": "user"})
    assert users.get_by_id(1).is_active is True

    other = svc.update_user(current_role=Role.ADMIN, current_user_id=1, user_id=2, data={"is_active": False})
    assert other.is_active is False


def test_get_user_missing_raises_not_found():
    with pytest.raises(NotFoundError):
        UserService(InMemoryUsers()).get_user(99)


def test_update_profile_blocks_company_id_change_for_users():
    users = InMemoryUsers([make_user(2, company_id="C002"), make_user(1, role=Role.ADMIN, company_id="C001")])
    svc = UserService(users)

    same = svc.update_profile(current_user_id=2, current_role=Role.USER, data={"company_id": "C002", "phone": "123"})
    assert same.phone == "123"

    with pytest.raises(AuthorizationError):
        svc.update_profile(current_user_id=2, current_role=Role.USER, data={"company_id": "C050"})

    admin = svc.update_profile(current_user_id=1, current_role=Role.ADMIN, data={"company_id": "C050"})
    assert admin.company_id == "C050"


def test_assign_missing_company_ids_oldest_first():
    users = InMemoryUsers(
        [
            make_user(1, company_id="C007"),
            make_user(2, company_id=None),
            make_user(3, company_id=None),
        ]
    )
    assigned = UserService(users).assign_missing_company_ids(current_role=Role.ADMIN)

    assert [(a["user_id"], a["company_id"]) for a in assigned] == [(2, "C008"), (3, "C009")]


def test_user_analytics_splits_week_and_month():
    logs = InMemoryTimeLogs(
        [
            TimeLog(1, project_id=1, user_id=5, work_type=WorkType.BACKEND, hours=3, work_date=date(2026, 3, 30), description="api work"),
            TimeLog(2, project_id=2, user_id=5, work_type=WorkType.TESTING, hours=2, work_date=date(2026, 3, 10), description="tests run"),
            TimeLog(3, project_id=1, user_id=5, work_type=WorkType.BACKEND, hours=4, work_date=date(2026, 1, 5), description="old work"),
        ]
    )
    users = InMemoryUsers([make_user(5)])

    stats = UserService(users, logs).user_analytics(5, today=date(2026, 3, 31))

    assert stats["total_hours"] == 9
    assert stats["this_week_hours"] == 3
    assert stats["this_month_hours"] == 5
    assert stats["projects_worked_on"] == 2
    assert stats["hours_by_work_type"] == {"backend": 7, "testing": 2}


def test_team_analytics_counts_roles_and_departments():
    users = InMemoryUsers(
        [
            make_user(1, role=Role.ADMIN, department=Department.MANAGEMENT),
            make_user(2, department=Department.WEB),
            make_user(3, department=Department.WEB, is_active=False),
        ]
    )
    stats = UserService(users).team_analytics(current_role=Role.ADMIN)

    assert stats["total_users"] == 3
    assert stats["active_users"] == 2
    assert stats["admin_users"] == 1
    assert stats["team_members"] == 2
    assert stats["departments"] == {"management": 1, "web": 2}


def test_upcoming_birthdays_window_and_leap_day():
    users = InMemoryUsers(
        [
            make_user(1, name="Leap", date_of_birth=date(2000, 2, 29)),
            make_user(2, name="Soon", date_of_birth=date(1990, 2, 20)),
            make_user(3, name="Far", date_of_birth=date(1990, 8, 1)),
            make_user(4, name="NoDob"),
        ]
    )
    today = date(2027, 2, 18)

    birthdays = UserService(users).upcoming_birthdays(today=today)

    assert [b["name"] for b in birthdays] == ["Soon", "Leap"]
    soon, leap = birthdays
    assert soon["days_until"] == 2 and soon["is_this_week"] and soon["turning"] == 37
    assert leap["date"] == "2027-02-28"
    assert leap["days_until"] == 10
    assert leap["is_this_week"] is False
