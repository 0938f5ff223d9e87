from __future__ import annotations

from flask import Flask, request

from ..common.http import int_arg, json_ok
from ..container import Container
from ..core.exceptions import ValidationError


def _month_and_year() -> tuple[int, int]:
    month, year = int_arg("month"), int_arg("year")
    if month is None or year is None:
        raise ValidationError("Month and year are required")
    return month, year


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/attendance/report/teacher/<course_id>", methods=["GET"], endpoint="teacher_report")
    def teacher_report(course_id: str):
        month, year = _month_and_year()
        rows = reports.course_monthly_report(
            course_id,
            month=month,
            year=year,
            intake=request.args.get("intake"),
            section=request.args.get("section"),
        )
        return json_ok(report=[r.to_dict() for r in rows])

    @app.route("/attendance/report/teacher/<course_id>/total", methods=["GET"], endpoint="teacher_total_report")
    def teacher_total_report(course_id: str):
        rows = reports.course_report(
            course_id,
            intake=request.args.get("intake"),
            section=request.args.get("section"),
        )
        return json_ok(report=[r.to_dict() for r in rows])

    @app.route("/attendance/report/student/total/<student_id>", methods=["GET"], endpoint="student_total_report")
    def student_total_report(student_id: str):
        return json_ok(**reports.student_total(student_id).to_dict())

    @app.route(
        "/attendance/report/student/all-courses/<student_id>",
        methods=["GET"],
        endpoint="student_all_courses_report",
    )
    def student_all_courses_report(student_id: str):
        return json_ok(report=[r.to_dict() for r in reports.student_all_courses(student_id)])

    @app.route(
        "/attendance/report/student/<student_id>/<course_id>",
        methods=["GET"],
        endpoint="student_monthly_report",
    )
    def student_monthly_report(student_id: str, course_id: str):
        month, year = _month_and_year()
        report = reports.student_monthly_report(student_id, course_id, month=month, year=year)
        return json_ok(**report.to_dict())

    @app.route("/attendance/months/<course_id>", methods=["GET"], endpoint="available_months")
    def available_months(course_id: str):
        months = reports.available_months(course_id, request.args.get("studentId"))
        return json_ok(months=[m.to_dict() for m in months])

    @app.route("/attendance/stats/<course_id>", methods=["GET"], endpoint="attendance_stats")
    def attendance_stats(course_id: str):
        stats = reports.course_stats(
            course_id,
            intake=request.args.get("intake"),
            section=request.args.get("section"),
        )
        return json_ok(stats=stats.to_dict())
