from __future__ import annotations

from flask import Flask, jsonify, redirect, request

from ..container import Container
from .model import salary_detail_to_dict, salary_to_dict

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
                "records": [salary_detail_to_dict(d) for d in page.records],
            }
        )

    @app.route(f"{API_PREFIX}/salaries", methods=["POST"], endpoint="salary_create")
    def salary_create():
        record = container.salary_service.create(_body())
        return jsonify({"success": True, "salary": salary_to_dict(record)}), 201

    @app.route(f"{API_PREFIX}/salaries", methods=["GET"], endpoint="salary_list")
    def salary_list():
        return _page_response(container.salary_service.list_salaries(request.args))

    @app.route(f"{API_PREFIX}/salaries/generate", methods=["POST"], endpoint="salary_generate")
    def salary_generate():
        data = _body()
        result = container.payroll_generator.generate_for_period(
            start_period=data.get("startPeriod"),
            end_period=data.get("endPeriod"),
            daily_wage=data.get("dailyWage"),
        )
        status = 201 if result.generated_count else 200
        return jsonify({"success": True, **result.to_dict()}), status

    @app.route(f"{API_PREFIX}/salaries/summary/period", methods=["GET"], endpoint="salary_summary_period")
    def salary_summary_period():
        summary = container.aggregation_service.salary_summary(
            start_period=request.args.get("startPeriod"),
            end_period=request.args.get("endPeriod"),
        )
        return jsonify({"success": True, **summary.to_dict()})

    @app.route(
        f"{API_PREFIX}/salaries/summary/labourer/<labourer_id>",
        methods=["GET"],
        endpoint="salary_summary_labourer",
    )
    def salary_summary_labourer(labourer_id: str):
        summary = container.aggregation_service.salary_summary(
            labourer_id,
            start_period=request.args.get("startPeriod"),
            end_period=request.args.get("endPeriod"),
        )
        return jsonify({"success": True, **summary.to_dict()})

    @app.route(f"{API_PREFIX}/salaries/labourer/<labourer_id>/payslips", methods=["GET"], endpoint="salary_payslips")
    def salary_payslips(labourer_id: str):
        return _page_response(container.salary_service.list_payslips(labourer_id, request.args))

    @app.route(f"{API_PREFIX}/salaries/<salary_id>", methods=["GET"], endpoint="salary_get")
    def salary_get(salary_id: str):
        detail = container.salary_service.get(salary_id)
        return jsonify({"success": True, "salary": salary_detail_to_dict(detail)})

    @app.route(f"{API_PREFIX}/salaries/<salary_id>", methods=["PUT"], endpoint="salary_update")
    def salary_update(salary_id: str):
        detail = container.salary_service.update(salary_id, _body())
        return jsonify({"success": True, "salary": salary_detail_to_dict(detail)})

    @app.route(f"{API_PREFIX}/salaries/<salary_id>", methods=["DELETE"], endpoint="salary_delete")
    def salary_delete(salary_id: str):
        container.salary_service.delete(salary_id)
        return jsonify({"success": True, "message": "Salary record deleted successfully"})

    @app.route(f"{API_PREFIX}/salaries/<salary_id>/mark-paid", methods=["PATCH"], endpoint="salary_mark_paid")
    def salary_mark_paid(salary_id: str):
        record = container.salary_service.mark_paid(salary_id, _body().get("paymentDate"))
        return jsonify({"success": True, "salary": salary_to_dict(record)})

    @app.route(f"{API_PREFIX}/salaries/<salary_id>/payslip-url", methods=["PUT"], endpoint="salary_set_payslip_url")
    def salary_set_payslip_url(salary_id: str):
        record = container.salary_service.set_payslip_url(salary_id, _body().get("payslipUrl"))
        return jsonify({"success": True, "salary": salary_to_dict(record)})

    @app.route(f"{API_PREFIX}/salaries/<salary_id>/download-payslip", methods=["GET"], endpoint="salary_download_payslip")
    def salary_download_payslip(salary_id: str):
        return redirect(container.salary_service.payslip_url(salary_id))
