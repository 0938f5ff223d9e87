from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.errors import storage_errors
from ..common.ids import normalize_id, normalize_optional_id
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_CREDITS, DEFAULT_SEMESTER
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..enrollments.service import EnrollmentService
from .model import Course
from .repository import CourseRepository

logger = logging.getLogger(__name__)

# JSON field -> model attribute accepted by update_course.
_PATCHABLE_FIELDS = {
    "courseCode": "course_code",
    "courseName": "course_name",
    "department": "department",
    "credits": "credits",
    "description": "description",
    "semester": "semester",
    "isActive": "is_active",
    "teacherName": "teacher_name",
}


def _parse_credits(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_CREDITS
    try:
        credits = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Credits must be a number")
    if credits <= 0:
        raise ValidationError("Credits must be positive")
    return credits


class CourseService:
    def __init__(self, courses: CourseRepository, enrollments: EnrollmentService):
        self._courses = courses
        self._enrollments = enrollments

    @staticmethod
    def _require_staff(current_role: Role) -> None:
        if current_role not in {Role.TEACHER, Role.ADMIN}:
            raise AuthorizationError("Only teachers and admins can manage courses")

    def _get_owned(self, *, current_role: Role, current_user_id: int, course_id: int) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        if current_role != Role.ADMIN and course.teacher_id != int(current_user_id):
            raise AuthorizationError("Only the course owner or an admin can change this course")
        return course

    def create_course(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        current_user_name: str,
        course_code: str,
        course_name: str,
        department: str,
        credits: Any = None,
        description: Optional[str] = None,
        semester: Optional[str] = None,
        teacher_id: Any = None,
        teacher_name: Optional[str] = None,
    ) -> Course:
        self._require_staff(current_role)

        if current_role == Role.TEACHER:
            owner_id, owner_name = int(current_user_id), current_user_name
        else:
            # Admins may create a course on behalf of a teacher.
            owner_id = normalize_optional_id(teacher_id, "Teacher ID") or int(current_user_id)
            owner_name = optional_text(teacher_name) or current_user_name

        with storage_errors("Failed to create course"):
            course_id = self._courses.create_course(
                course_code=require_non_empty(course_code, "Course code"),
                course_name=require_non_empty(course_name, "Course name"),
                department=require_non_empty(department, "Department"),
                credits=_parse_credits(credits),
                description=(description or "").strip(),
                teacher_id=owner_id,
                teacher_name=owner_name,
                semester=optional_text(semester) or DEFAULT_SEMESTER,
            )
            course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_course(self, course_id) -> Course:
        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to get course"):
            course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def list_all(self) -> Sequence[Course]:
        with storage_errors("Failed to get courses"):
            return self._courses.list_courses()

    def list_by_teacher(self, teacher_id) -> Sequence[Course]:
        teacher_id = normalize_id(teacher_id, "Teacher ID")
        with storage_errors("Failed to get courses"):
            return self._courses.list_courses(teacher_id=teacher_id)

    def list_by_department(self, department: str) -> Sequence[Course]:
        department = require_non_empty(department, "Department")
        with storage_errors("Failed to get courses"):
            return self._courses.list_courses(department=department)

    def update_course(self, *, current_role: Role, current_user_id: int, course_id, patch: dict) -> Course:
        self._require_staff(current_role)
        course_id = normalize_id(course_id, "Course ID")

        unknown = sorted(set(patch) - set(_PATCHABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unsupported fields: {', '.join(unknown)}")
        if not patch:
            raise ValidationError("Nothing to update")

        fields: dict[str, Any] = {}
        for key, value in patch.items():
            attr = _PATCHABLE_FIELDS[key]
            if attr == "credits":
                value = _parse_credits(value)
            elif attr == "is_active":
                value = bool(value)
            elif attr in {"course_code", "course_name", "department", "semester"}:
                value = require_non_empty(value, key)
            else:
                value = (value or "").strip()
            fields[attr] = value

        with storage_errors("Failed to update course"):
            self._get_owned(current_role=current_role, current_user_id=current_user_id, course_id=course_id)
            if not self._courses.update_course(course_id, fields):
                raise NotFoundError("Course not found")
            return self._courses.get_by_id(course_id)

    def delete_course(self, *, current_role: Role, current_user_id: int, course_id) -> int:
        """Delete a course and hard-delete its enrollments. Attendance rows are kept.

        Returns the number of enrollments removed.
        """

        self._require_staff(current_role)
        course_id = normalize_id(course_id, "Course ID")

        with storage_errors("Failed to delete course"):
            self._get_owned(current_role=current_role, current_user_id=current_user_id, course_id=course_id)
            removed = self._enrollments.cascade_delete_by_course(course_id)
            if not self._courses.delete_by_id(course_id):
                raise NotFoundError("Course not found")

        logger.info("Deleted course %s (%s enrollments removed)", course_id, removed)
        return removed
