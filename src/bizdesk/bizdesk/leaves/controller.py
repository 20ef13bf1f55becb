from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    admin_required,
    as_flag,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
)
from ..container import Container


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service

    @app.route("/api/leaves", methods=["GET"], endpoint="api_my_leaves")
    @login_required
    def my_leaves():
        return ok(leaves=[leave.to_dict() for leave in leaves.list_for_user(current_user_id())])

    @app.route("/api/leaves", methods=["POST"], endpoint="api_apply_leave")
    @login_required
    def apply_leave():
        data = json_body()
        application = leaves.apply_for_leave(
            user_id=current_user_id(),
            data=data,
            confirm_excess=as_flag(data.get("confirm_excess")),
        )
        return ok(
            201,
            leave=application.leave.to_dict(),
            excess_days=application.excess_days,
            salary_deduction=application.salary_deduction,
            message="Leave application submitted successfully!",
        )

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="api_leave_balance")
    @login_required
    def leave_balance():
        balance = leaves.get_balance(current_user_id(), year=request.args.get("year", type=int))
        return ok(balance=balance.to_dict())

    @app.route("/api/leaves/<int:leave_id>/cancel", methods=["POST"], endpoint="api_cancel_leave")
    @login_required
    def cancel_leave(leave_id: int):
        leave = leaves.cancel(leave_id=leave_id, user_id=current_user_id())
        return ok(leave=leave.to_dict())

    # ---- admin ----

    @app.route("/api/admin/leaves", methods=["GET"], endpoint="api_admin_leaves")
    @admin_required
    def all_leaves():
        items = leaves.list_all(current_role=current_role(), status=request.args.get("status"))
        return ok(leaves=[leave.to_dict() for leave in items])

    @app.route("/api/admin/leaves/pending", methods=["GET"], endpoint="api_admin_pending_leaves")
    @admin_required
    def pending_leaves():
        items = leaves.list_pending(current_role=current_role())
        return ok(leaves=[leave.to_dict() for leave in items])

    @app.route("/api/admin/leaves/<int:leave_id>/decision", methods=["POST"], endpoint="api_decide_leave")
    @admin_required
    def decide_leave(leave_id: int):
        data = json_body()
        leave = leaves.decide(
            current_role=current_role(),
            admin_user_id=current_user_id(),
            leave_id=leave_id,
            status=data.get("status", ""),
            remarks=data.get("remarks", ""),
        )
        return ok(leave=leave.to_dict())

    @app.route("/api/admin/leaves/statistics", methods=["GET"], endpoint="api_leave_statistics")
    @admin_required
    def leave_statistics():
        stats = leaves.statistics(current_role=current_role(), year=request.args.get("year", type=int))
        return ok(statistics=stats)
