from __future__ import annotations

from flask import Flask, request

from ..common.http import current_role, current_user_id, json_body, json_error, json_ok, role_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AlreadyRecordedError, ValidationError

_STAFF = (Role.TEACHER, Role.ADMIN)


def _taken_by(data: dict):
    # Only admins may record on behalf of another user.
    if current_role() == Role.ADMIN and data.get("takenBy"):
        return data["takenBy"]
    return current_user_id()


def register(app: Flask, container: Container) -> None:
    @app.route("/attendance/take", methods=["POST"], endpoint="take_attendance")
    @role_required(*_STAFF)
    def take_attendance():
        data = json_body()
        students = data.get("students") or {}
        if not isinstance(students, dict):
            raise ValidationError("students must be an object of studentId -> status")

        try:
            result = container.attendance_service.take_bulk(
                data.get("courseId"),
                data.get("date"),
                data.get("intake"),
                data.get("section"),
                students,
                _taken_by(data),
                notes=data.get("notes") or "",
            )
        except AlreadyRecordedError as e:
            return json_error(
                str(e),
                400,
                created=0,
                errors=["Attendance already recorded for this date and section"],
                message=str(e),
            )
        return json_ok(**result.to_dict())

    @app.route("/attendance", methods=["POST"], endpoint="record_attendance")
    @role_required(*_STAFF)
    def record_attendance():
        data = json_body()
        record = container.attendance_service.record_one(
            course_id=data.get("courseId"),
            student_id=data.get("studentId"),
            attendance_date=data.get("date"),
            intake=data.get("intake"),
            section=data.get("section"),
            status=data.get("status"),
            notes=data.get("notes"),
            taken_by=_taken_by(data),
            student_name=data.get("studentName"),
            student_email=data.get("studentEmail"),
        )
        return json_ok(201, attendance=record.to_dict())

    @app.route("/attendance/<attendance_id>", methods=["PUT"], endpoint="update_attendance")
    @role_required(*_STAFF)
    def update_attendance(attendance_id: str):
        record = container.attendance_service.update(attendance_id, json_body())
        return json_ok(message="Attendance updated", attendance=record.to_dict())

    @app.route("/attendance/<attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @role_required(*_STAFF)
    def delete_attendance(attendance_id: str):
        container.attendance_service.delete(attendance_id)
        return json_ok(message="Attendance deleted")

    @app.route("/attendance/course/<course_id>", methods=["GET"], endpoint="course_attendance")
    def course_attendance(course_id: str):
        records = container.attendance_service.by_course(course_id, request.args.get("date"))
        return json_ok(attendance=[r.to_dict() for r in records])

    @app.route("/attendance/student/<student_id>", methods=["GET"], endpoint="student_attendance")
    def student_attendance(student_id: str):
        records = container.attendance_service.by_student(student_id, request.args.get("courseId"))
        return json_ok(attendance=[r.to_dict() for r in records])

    @app.route("/attendance/intakes-sections/<course_id>", methods=["GET"], endpoint="intakes_sections")
    def intakes_sections(course_id: str):
        return json_ok(**container.attendance_service.intakes_and_sections(course_id).to_dict())
