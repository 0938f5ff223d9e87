from __future__ import annotations

from flask import Flask, request

from ..common.http import current_role, current_user_id, json_body, json_ok, login_required
from ..common.ids import normalize_id
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError


def register(app: Flask, container: Container) -> None:
    @app.route("/enrollments", methods=["POST"], endpoint="enroll")
    @login_required
    def enroll():
        data = json_body()
        student_id = normalize_id(data.get("studentId"), "Student ID")
        if current_role() == Role.STUDENT and student_id != current_user_id():
            raise AuthorizationError("Students can only enroll themselves")

        student, course = container.enrollment_service.snapshots_from_payload(data)
        enrollment = container.enrollment_service.enroll(
            student_id,
            data.get("courseId"),
            student=student,
            course=course,
        )
        return json_ok(201, message="Enrolled successfully", enrollment=enrollment.to_dict())

    @app.route("/enrollments/<enrollment_id>", methods=["DELETE"], endpoint="drop_enrollment")
    @login_required
    def drop_enrollment(enrollment_id: str):
        if current_role() == Role.STUDENT:
            enrollment = container.enrollment_service.get(enrollment_id)
            if enrollment.student_id != current_user_id():
                raise AuthorizationError("Students can only drop their own enrollments")

        container.enrollment_service.drop(enrollment_id)
        return json_ok(message="Enrollment dropped")

    @app.route("/enrollments/student/<student_id>", methods=["GET"], endpoint="enrollments_by_student")
    def enrollments_by_student(student_id: str):
        enrollments = container.enrollment_service.list_by_student(student_id)
        return json_ok(enrollments=[e.to_dict() for e in enrollments])

    @app.route("/enrollments/course/<course_id>", methods=["GET"], endpoint="enrollments_by_course")
    def enrollments_by_course(course_id: str):
        enrollments = container.enrollment_service.list_by_course(course_id)
        return json_ok(enrollments=[e.to_dict() for e in enrollments])

    @app.route("/enrollments/course-fast/<course_id>", methods=["GET"], endpoint="enrollments_by_course_fast")
    def enrollments_by_course_fast(course_id: str):
        enrollments = container.enrollment_service.list_by_course_fast(
            course_id,
            intake=request.args.get("intake"),
            section=request.args.get("section"),
        )
        return json_ok(enrollments=[e.to_dict() for e in enrollments])

    @app.route("/enrollments/teacher/<teacher_id>", methods=["GET"], endpoint="enrollments_by_teacher")
    def enrollments_by_teacher(teacher_id: str):
        enrollments = container.enrollment_service.list_by_teacher(teacher_id)
        return json_ok(enrollments=[e.to_dict() for e in enrollments])
