from __future__ import annotations

from flask import Flask, request

from ..common.web import admin_required, current_role, current_user_id, json_body, login_required, ok
from ..core.constants import RECENT_LOGS_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    projects = container.project_service

    # ---- projects ----

    @app.route("/api/projects", methods=["GET"], endpoint="api_projects")
    @admin_required
    def list_projects():
        items = projects.list_projects()
        return ok(projects=[p.to_dict() for p in items], metrics=projects.project_metrics())

    @app.route("/api/projects", methods=["POST"], endpoint="api_create_project")
    @admin_required
    def create_project():
        project = projects.create_project(current_role=current_role(), data=json_body())
        return ok(201, project=project.to_dict())

    @app.route("/api/projects/<int:project_id>", methods=["GET"], endpoint="api_get_project")
    @login_required
    def get_project(project_id: int):
        project = projects.get_project(project_id)
        if current_role() != Role.ADMIN and current_user_id() not in project.assigned_user_ids():
            raise AuthorizationError("You are not assigned to this project")
        return ok(project=project.to_dict())

    @app.route("/api/projects/<int:project_id>", methods=["PUT"], endpoint="api_update_project")
    @admin_required
    def update_project(project_id: int):
        project = projects.update_project(current_role=current_role(), project_id=project_id, data=json_body())
        return ok(project=project.to_dict())

    @app.route("/api/projects/<int:project_id>", methods=["DELETE"], endpoint="api_delete_project")
    @admin_required
    def delete_project(project_id: int):
        projects.delete_project(current_role=current_role(), project_id=project_id)
        return ok(message="Project deleted")

    @app.route("/api/projects/<int:project_id>/analytics", methods=["GET"], endpoint="api_project_analytics")
    @admin_required
    def project_analytics(project_id: int):
        return ok(analytics=projects.project_analytics(project_id))

    @app.route("/api/projects/<int:project_id>/time-logs", methods=["GET"], endpoint="api_project_time_logs")
    @admin_required
    def project_time_logs(project_id: int):
        projects.get_project(project_id)
        return ok(time_logs=[log.to_dict() for log in projects.project_time_logs(project_id)])

    @app.route("/api/my/projects", methods=["GET"], endpoint="api_my_projects")
    @login_required
    def my_projects():
        items = projects.list_user_projects(
            user_id=current_user_id(),
            current_role=current_role(),
            status=request.args.get("status") or None,
            search=request.args.get("search"),
        )
        return ok(projects=[p.to_dict() for p in items])

    # ---- time logs ----

    @app.route("/api/time-logs", methods=["GET"], endpoint="api_my_time_logs")
    @login_required
    def my_time_logs():
        limit = request.args.get("limit", type=int) or RECENT_LOGS_LIMIT
        logs = projects.user_time_logs(current_user_id(), limit=limit)
        return ok(time_logs=[log.to_dict() for log in logs])

    @app.route("/api/time-logs", methods=["POST"], endpoint="api_log_time")
    @login_required
    def log_time():
        log = projects.log_time(user_id=current_user_id(), data=json_body())
        return ok(201, time_log=log.to_dict())

    @app.route("/api/time-logs/<int:time_log_id>", methods=["PUT"], endpoint="api_update_time_log")
    @login_required
    def update_time_log(time_log_id: int):
        log = projects.update_time_log(
            current_user_id=current_user_id(),
            current_role=current_role(),
            time_log_id=time_log_id,
            data=json_body(),
        )
        return ok(time_log=log.to_dict())

    @app.route("/api/time-logs/<int:time_log_id>", methods=["DELETE"], endpoint="api_delete_time_log")
    @login_required
    def delete_time_log(time_log_id: int):
        projects.delete_time_log(
            current_user_id=current_user_id(), current_role=current_role(), time_log_id=time_log_id
        )
        return ok(message="Time log deleted")

    @app.route("/api/admin/dashboard", methods=["GET"], endpoint="api_admin_dashboard")
    @admin_required
    def dashboard():
        return ok(dashboard=projects.dashboard_analytics(current_role=current_role()))
