from __future__ import annotations

from flask import Flask, request, session

from ..common.http import current_role, current_user_id, json_body, json_ok, role_required
from ..container import Container
from ..core.enums import Role

_STAFF = (Role.TEACHER, Role.ADMIN)


def register(app: Flask, container: Container) -> None:
    @app.route("/courses", methods=["POST"], endpoint="create_course")
    @role_required(*_STAFF)
    def create_course():
        data = json_body()
        course = container.course_service.create_course(
            current_role=current_role(),
            current_user_id=current_user_id(),
            current_user_name=session.get("name") or "",
            course_code=data.get("courseCode", ""),
            course_name=data.get("courseName", ""),
            department=data.get("department", ""),
            credits=data.get("credits"),
            description=data.get("description"),
            semester=data.get("semester"),
            teacher_id=data.get("teacherId"),
            teacher_name=data.get("teacherName"),
        )
        return json_ok(201, message="Course created successfully", course=course.to_dict())

    @app.route("/courses", methods=["GET"], endpoint="list_courses")
    def list_courses():
        return json_ok(courses=[c.to_dict() for c in container.course_service.list_all()])

    @app.route("/courses/<course_id>", methods=["GET"], endpoint="get_course")
    def get_course(course_id: str):
        return json_ok(course=container.course_service.get_course(course_id).to_dict())

    @app.route("/courses/teacher/<teacher_id>", methods=["GET"], endpoint="courses_by_teacher")
    def courses_by_teacher(teacher_id: str):
        courses = container.course_service.list_by_teacher(teacher_id)
        return json_ok(courses=[c.to_dict() for c in courses])

    @app.route("/courses/department/<department>", methods=["GET"], endpoint="courses_by_department")
    def courses_by_department(department: str):
        courses = container.course_service.list_by_department(department)
        return json_ok(courses=[c.to_dict() for c in courses])

    @app.route("/courses/available/<student_id>", methods=["GET"], endpoint="available_courses")
    def available_courses(student_id: str):
        courses = container.enrollment_service.available_courses_for_student(
            student_id,
            request.args.get("department", ""),
        )
        return json_ok(courses=[c.to_dict() for c in courses])

    @app.route("/courses/<course_id>", methods=["PUT"], endpoint="update_course")
    @role_required(*_STAFF)
    def update_course(course_id: str):
        course = container.course_service.update_course(
            current_role=current_role(),
            current_user_id=current_user_id(),
            course_id=course_id,
            patch=json_body(),
        )
        return json_ok(message="Course updated successfully", course=course.to_dict())

    @app.route("/courses/<course_id>", methods=["DELETE"], endpoint="delete_course")
    @role_required(*_STAFF)
    def delete_course(course_id: str):
        removed = container.course_service.delete_course(
            current_role=current_role(),
            current_user_id=current_user_id(),
            course_id=course_id,
        )
        return json_ok(message="Course deleted successfully", enrollmentsRemoved=removed)
