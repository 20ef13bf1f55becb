from __future__ import annotations

from flask import Flask, request, session, url_for

from ..common.web import (
    admin_required,
    as_flag,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    uploaded_file,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    # ---- auth ----

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = as_flag(data.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        user = container.user_service.get_user(s_user.user_id)
        return ok(user=user.to_public_dict())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def logout():
        session.clear()
        return ok(message="Signed out")

    @app.route("/api/auth/register", methods=["POST"], endpoint="api_register")
    def register_admin():
        data = json_body()
        user = container.auth_service.register(
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            confirm_password=data.get("confirm_password", ""),
            parent_pin=data.get("parent_pin", ""),
            department=data.get("department"),
            phone=data.get("phone", ""),
        )
        session.clear()
        session["user_id"] = user.user_id
        session["name"] = user.name
        session["role"] = user.role.value
        return ok(201, user=user.to_public_dict(), message="Admin account created successfully!")

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @login_required
    def me():
        user = container.user_service.get_user(current_user_id())
        return ok(user=user.to_public_dict())

    @app.route("/api/auth/password", methods=["POST"], endpoint="api_change_password")
    @login_required
    def change_password():
        data = json_body()
        container.auth_service.change_password(
            user_id=current_user_id(),
            current_password=data.get("current_password", ""),
            new_password=data.get("new_password", ""),
            confirm_password=data.get("confirm_password", ""),
        )
        return ok(message="Password updated successfully")

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="api_forgot_password")
    def forgot_password():
        data = json_body()
        token = container.auth_service.request_password_reset(data.get("email", ""))
        payload = {"message": "If that email is registered, a password reset link has been sent"}
        if token:
            # no mail transport: the link goes to the log
            app.logger.info("Password reset link: %s", url_for("api_reset_password", token=token, _external=True))
            if app.debug or app.testing:
                payload["reset_token"] = token
        return ok(**payload)

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="api_reset_password")
    def reset_password():
        data = json_body()
        container.auth_service.reset_password(
            token=data.get("token") or request.args.get("token", ""),
            new_password=data.get("new_password", ""),
            confirm_password=data.get("confirm_password", ""),
        )
        return ok(message="Password has been reset. You can now sign in.")

    # ---- user administration ----

    @app.route("/api/admin/users", methods=["GET"], endpoint="api_admin_users")
    @admin_required
    def admin_users():
        role = request.args.get("role")
        if role:
            try:
                users = container.user_service.list_by_role(Role(role))
            except ValueError:
                raise ValidationError("Invalid role")
        elif request.args.get("active") == "1":
            users = container.user_service.list_active()
        else:
            users = container.user_service.list_users(current_role=current_role())
        return ok(users=[u.to_public_dict() for u in users])

    @app.route("/api/admin/users", methods=["POST"], endpoint="api_admin_add_user")
    @admin_required
    def add_user():
        user = container.user_service.create_user(current_role=current_role(), data=json_body())
        return ok(201, user=user.to_public_dict())

    @app.route("/api/admin/users/<int:user_id>", methods=["GET"], endpoint="api_admin_get_user")
    @admin_required
    def get_user(user_id: int):
        return ok(user=container.user_service.get_user(user_id).to_public_dict())

    @app.route("/api/admin/users/<int:user_id>", methods=["PUT"], endpoint="api_admin_update_user")
    @admin_required
    def update_user(user_id: int):
        user = container.user_service.update_user(
            current_role=current_role(), user_id=user_id, data=json_body(), current_user_id=current_user_id()
        )
        return ok(user=user.to_public_dict())

    @app.route("/api/admin/users/<int:user_id>/status", methods=["POST"], endpoint="api_admin_user_status")
    @admin_required
    def update_status(user_id: int):
        data = json_body()
        if "is_active" not in data:
            raise ValidationError("is_active is required")
        user = container.user_service.update_status(
            current_role=current_role(),
            current_user_id=current_user_id(),
            user_id=user_id,
            is_active=as_flag(data["is_active"]),
        )
        return ok(user=user.to_public_dict())

    @app.route("/api/admin/users/<int:user_id>", methods=["DELETE"], endpoint="api_admin_delete_user")
    @admin_required
    def delete_user(user_id: int):
        container.user_service.delete_user(
            current_role=current_role(), current_user_id=current_user_id(), user_id=user_id
        )
        return ok(message="User deleted")

    @app.route("/api/admin/team-analytics", methods=["GET"], endpoint="api_team_analytics")
    @admin_required
    def team_analytics():
        return ok(analytics=container.user_service.team_analytics(current_role=current_role()))

    @app.route("/api/admin/users/company-ids", methods=["POST"], endpoint="api_assign_company_ids")
    @admin_required
    def assign_company_ids():
        assigned = container.user_service.assign_missing_company_ids(current_role=current_role())
        return ok(assigned=assigned)

    # ---- self service ----

    @app.route("/api/profile", methods=["PUT"], endpoint="api_update_profile")
    @login_required
    def update_profile():
        user = container.user_service.update_profile(
            current_user_id=current_user_id(), current_role=current_role(), data=json_body()
        )
        session["name"] = user.name
        return ok(user=user.to_public_dict())

    @app.route("/api/profile/picture", methods=["POST"], endpoint="api_upload_picture")
    @login_required
    def upload_picture():
        upload = uploaded_file("file")
        if upload is None:
            raise ValidationError("Please choose an image to upload")
        user = container.profile_service.upload_profile_picture(user_id=current_user_id(), upload=upload)
        return ok(user=user.to_public_dict())

    @app.route("/api/profile/picture", methods=["DELETE"], endpoint="api_delete_picture")
    @login_required
    def delete_picture():
        result = container.profile_service.delete_profile_picture(user_id=current_user_id())
        return ok(deleted=result["success"], error=result.get("error"))

    @app.route("/api/users/<int:user_id>/analytics", methods=["GET"], endpoint="api_user_analytics")
    @login_required
    def user_analytics(user_id: int):
        if user_id != current_user_id() and current_role() != Role.ADMIN:
            raise AuthorizationError("You can only view your own analytics")
        return ok(analytics=container.user_service.user_analytics(user_id))

    @app.route("/api/birthdays", methods=["GET"], endpoint="api_birthdays")
    @login_required
    def birthdays():
        return ok(birthdays=container.user_service.upcoming_birthdays())
