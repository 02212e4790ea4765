from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..container import Container
from .model import detail_to_dict, record_to_dict

API_PREFIX = "/api/v1"


def register(app: Flask, container: Container) -> None:
    def _body() -> dict:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    def _page_response(page):
        return jsonify(
            {
                "success": True,
                "meta": page.meta(),
                "records": [detail_to_dict(d) for d in page.records],
            }
        )

    @app.route(f"{API_PREFIX}/attendance", methods=["POST"], endpoint="attendance_mark")
    def attendance_mark():
        data = _body()
        record = container.attendance_service.mark(
            labourer_id=data.get("labourerId"),
            project_id=data.get("projectId"),
            work_date=data.get("date"),
            shift=data.get("shift"),
            status=data.get("status"),
            marked_by=data.get("markedBy"),
        )
        return jsonify({"success": True, "message": "Attendance marked successfully", "attendance": record_to_dict(record)}), 201

    @app.route(f"{API_PREFIX}/attendance/bulk", methods=["POST"], endpoint="attendance_bulk_add")
    def attendance_bulk_add():
        result = container.bulk_service.bulk_add(_body().get("attendanceRecords"))
        return jsonify({"success": True, **result.to_dict()}), 201

    @app.route(f"{API_PREFIX}/attendance/<attendance_id>", methods=["PUT"], endpoint="attendance_update")
    def attendance_update(attendance_id: str):
        record = container.attendance_service.update(attendance_id, _body())
        return jsonify({"success": True, "message": "Attendance updated successfully", "attendance": record_to_dict(record)})

    @app.route(f"{API_PREFIX}/attendance/<attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    def attendance_delete(attendance_id: str):
        container.attendance_service.delete(attendance_id)
        return jsonify({"success": True, "message": "Attendance record deleted successfully"})

    @app.route(f"{API_PREFIX}/attendance/<attendance_id>", methods=["GET"], endpoint="attendance_get")
    def attendance_get(attendance_id: str):
        detail = container.attendance_service.get(attendance_id)
        return jsonify({"success": True, "attendance": detail_to_dict(detail)})

    @app.route(f"{API_PREFIX}/attendance/labourer/<labourer_id>", methods=["GET"], endpoint="attendance_by_labourer")
    def attendance_by_labourer(labourer_id: str):
        return _page_response(container.query_service.list_by_labourer(labourer_id, request.args))

    @app.route(f"{API_PREFIX}/attendance/project/<project_id>", methods=["GET"], endpoint="attendance_by_project")
    def attendance_by_project(project_id: str):
        return _page_response(container.query_service.list_by_project(project_id, request.args))

    @app.route(f"{API_PREFIX}/attendance/date", methods=["GET"], endpoint="attendance_by_date")
    def attendance_by_date():
        return _page_response(container.query_service.list_by_date(request.args))

    @app.route(
        f"{API_PREFIX}/attendance/labourer/<labourer_id>/summary",
        methods=["GET"],
        endpoint="attendance_labourer_summary",
    )
    def attendance_labourer_summary(labourer_id: str):
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        summary = container.aggregation_service.labourer_summary(labourer_id, start_date=start_s, end_date=end_s)
        return jsonify(
            {
                "success": True,
                "labourerId": int(labourer_id),
                "summary": summary.to_dict(),
                "startDate": start_s or None,
                "endDate": end_s or None,
            }
        )

    @app.route(
        f"{API_PREFIX}/attendance/project/<project_id>/summary",
        methods=["GET"],
        endpoint="attendance_project_summary",
    )
    def attendance_project_summary(project_id: str):
        start_s = request.args.get("startDate")
        end_s = request.args.get("endDate")
        summary = container.aggregation_service.project_summary(project_id, start_date=start_s, end_date=end_s)
        return jsonify(
            {
                "success": True,
                "projectId": int(project_id),
                "summary": summary.to_dict(),
                "startDate": start_s or None,
                "endDate": end_s or None,
            }
        )

    @app.route(f"{API_PREFIX}/attendance/download", methods=["GET"], endpoint="attendance_download")
    def attendance_download():
        csv_text = container.exporter.export_csv(request.args)
        filename = f"attendance_export_{int(now_local().timestamp() * 1000)}.csv"
        return app.response_class(
            csv_text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route(f"{API_PREFIX}/attendance/dashboard/stats", methods=["GET"], endpoint="attendance_dashboard_stats")
    def attendance_dashboard_stats():
        stats = container.aggregation_service.dashboard()
        return jsonify({"success": True, **stats.to_dict()})
