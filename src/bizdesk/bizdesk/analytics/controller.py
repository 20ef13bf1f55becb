from __future__ import annotations

from flask import Flask, request

from ..common.web import admin_required, current_role, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    analytics = container.analytics_service

    @app.route("/api/admin/analytics", methods=["GET"], endpoint="api_analytics")
    @admin_required
    def get_analytics():
        data = analytics.get_analytics(
            current_role=current_role(),
            period=request.args.get("period", "last30days"),
            project_id=request.args.get("project", "all"),
        )
        return ok(analytics=data)

    @app.route("/api/admin/analytics/export", methods=["GET"], endpoint="api_analytics_export")
    @admin_required
    def export_analytics():
        export = analytics.export(
            current_role=current_role(),
            period=request.args.get("period", "last30days"),
            project_id=request.args.get("project", "all"),
            fmt=request.args.get("format", "json"),
        )
        # Excel needs the BOM to detect UTF-8
        encoding = "utf-8-sig" if export.mimetype == "text/csv" else "utf-8"
        return app.response_class(
            export.content.encode(encoding),
            mimetype=export.mimetype,
            headers={"Content-Disposition": f"attachment; filename={export.filename}"},
        )
