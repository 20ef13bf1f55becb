from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    admin_required,
    as_flag,
    current_role,
    json_body,
    login_required,
    ok,
    uploaded_file,
)
from ..container import Container


def _policy_form() -> dict:
    # multipart fields arrive as strings
    data = json_body()
    if "is_active" in data:
        data["is_active"] = as_flag(data["is_active"])
    return data


def register(app: Flask, container: Container) -> None:
    policies = container.policy_service

    @app.route("/api/policies", methods=["GET"], endpoint="api_policies")
    @login_required
    def list_policies():
        items = policies.list_policies(
            current_role=current_role(),
            category=request.args.get("category"),
            search=request.args.get("search"),
        )
        return ok(policies=[p.to_dict() for p in items])

    @app.route("/api/policies/<int:policy_id>", methods=["GET"], endpoint="api_get_policy")
    @login_required
    def get_policy(policy_id: int):
        return ok(policy=policies.get_policy(policy_id, current_role=current_role()).to_dict())

    @app.route("/api/admin/policies", methods=["POST"], endpoint="api_add_policy")
    @admin_required
    def add_policy():
        policy = policies.add_policy(current_role=current_role(), data=_policy_form(), upload=uploaded_file("file"))
        return ok(201, policy=policy.to_dict(), message="Policy added successfully")

    @app.route("/api/admin/policies/<int:policy_id>", methods=["PUT"], endpoint="api_update_policy")
    @admin_required
    def update_policy(policy_id: int):
        policy = policies.update_policy(
            current_role=current_role(),
            policy_id=policy_id,
            data=_policy_form(),
            upload=uploaded_file("file"),
        )
        return ok(policy=policy.to_dict())

    @app.route("/api/admin/policies/<int:policy_id>", methods=["DELETE"], endpoint="api_delete_policy")
    @admin_required
    def delete_policy(policy_id: int):
        policies.delete_policy(current_role=current_role(), policy_id=policy_id)
        return ok(message="Policy deleted")

    @app.route("/api/admin/policies/defaults", methods=["POST"], endpoint="api_populate_policies")
    @admin_required
    def populate_policies():
        added = policies.populate_default_policies(current_role=current_role())
        return ok(added=added)
