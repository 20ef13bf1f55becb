from __future__ import annotations

from dataclasses import dataclass

from .analytics.service import AnalyticsService
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .policies.mysql_policy_repository import MySQLPolicyRepository
from .policies.service import PolicyService
from .projects.billing.factory import RevenueCalculatorFactory
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.mysql_time_log_repository import MySQLTimeLogRepository
from .projects.service import ProjectService
from .storage.local_storage import LocalFileStorage
from .users.mysql_user_repository import MySQLUserRepository
from .users.profile_service import ProfileService
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    storage: LocalFileStorage

    auth_service: AuthService
    user_service: UserService
    profile_service: ProfileService
    project_service: ProjectService
    leave_service: LeaveService
    policy_service: PolicyService
    analytics_service: AnalyticsService


def build_container(
    *,
    db_config: dict,
    upload_folder: str,
    public_upload_url: str = "/uploads",
    parent_pin: str = "1094",
    secret_key: str = "dev-secret-key",
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    storage = LocalFileStorage(upload_folder, public_url=public_upload_url)
    revenue = RevenueCalculatorFactory()

    users_repo = MySQLUserRepository(conn)
    projects_repo = MySQLProjectRepository(conn)
    time_logs_repo = MySQLTimeLogRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    policies_repo = MySQLPolicyRepository(conn)

    return Container(
        storage=storage,
        auth_service=AuthService(users_repo, parent_pin=parent_pin, secret_key=secret_key),
        user_service=UserService(users_repo, time_logs_repo),
        profile_service=ProfileService(users_repo, storage),
        project_service=ProjectService(projects_repo, time_logs_repo, revenue=revenue),
        leave_service=LeaveService(leaves_repo, users_repo),
        policy_service=PolicyService(policies_repo, storage),
        analytics_service=AnalyticsService(projects_repo, time_logs_repo, users_repo, revenue=revenue),
    )
