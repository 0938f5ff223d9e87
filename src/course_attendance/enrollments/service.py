from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.errors import storage_errors
from ..common.ids import normalize_id
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_CREDITS, DEFAULT_SEMESTER, DEFAULT_TEACHER_NAME
from ..core.enums import EnrollmentStatus, Role
from ..core.exceptions import AlreadyEnrolledError, NotFoundError, StorageError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..users.repository import UserRepository
from .model import CourseSnapshot, EnrolledCourse, Enrollment, NewEnrollment, StudentSnapshot
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Student <-> course relationship lifecycle.

    Business rules:
    - At most one active enrollment per (student, course).
    - Dropping is soft (status flips to dropped); course/user deletion is a hard cascade.
    - Course-facing listings hide enrollments whose student was deleted, except the
      fast path used while taking attendance.
    """

    def __init__(self, enrollments: EnrollmentRepository, users: UserRepository, courses: CourseRepository):
        self._enrollments = enrollments
        self._users = users
        self._courses = courses

    def _student_snapshot(self, student_id: int) -> StudentSnapshot:
        user = self._users.get_by_id(student_id)
        if not user or user.role != Role.STUDENT:
            raise NotFoundError("Student not found")
        return StudentSnapshot(
            name=user.name,
            email=user.email,
            custom_id=user.student_code,
            intake=user.intake,
            section=user.section,
        )

    def _course_snapshot(self, course_id: int) -> CourseSnapshot:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return CourseSnapshot(course_code=course.course_code, course_name=course.course_name, department=course.department)

    def enroll(
        self,
        student_id,
        course_id,
        *,
        student: Optional[StudentSnapshot] = None,
        course: Optional[CourseSnapshot] = None,
    ) -> Enrollment:
        """Create an active enrollment.

        Snapshots not supplied by the caller are copied from the current user/course.
        """

        student_id = normalize_id(student_id, "Student ID")
        course_id = normalize_id(course_id, "Course ID")

        with storage_errors("Failed to enroll student"):
            if self._enrollments.get_active(student_id, course_id):
                raise AlreadyEnrolledError("Student is already enrolled in this course")

            student = student or self._student_snapshot(student_id)
            course = course or self._course_snapshot(course_id)

            enrollment_id = self._enrollments.create(
                NewEnrollment(
                    student_id=student_id,
                    course_id=course_id,
                    student=student,
                    course=course,
                    enrolled_at=now_local(),
                )
            )
            if enrollment_id is None:
                raise AlreadyEnrolledError("Student is already enrolled in this course")

            enrollment = self._enrollments.get_by_id(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        return enrollment

    def get(self, enrollment_id) -> Enrollment:
        enrollment_id = normalize_id(enrollment_id, "Enrollment ID")
        with storage_errors("Failed to get enrollment"):
            enrollment = self._enrollments.get_by_id(enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        return enrollment

    def _with_course_details(self, enrollment: Enrollment) -> EnrolledCourse:
        course: Optional[Course] = None
        try:
            course = self._courses.get_by_id(enrollment.course_id)
        except StorageError:
            logger.warning("Course lookup failed for enrollment %s; using defaults", enrollment.enrollment_id, exc_info=True)

        if not course:
            return EnrolledCourse(
                enrollment=enrollment,
                credits=DEFAULT_CREDITS,
                description="",
                semester=DEFAULT_SEMESTER,
                teacher_name=DEFAULT_TEACHER_NAME,
            )
        return EnrolledCourse(
            enrollment=enrollment,
            credits=course.credits or DEFAULT_CREDITS,
            description=course.description or "",
            semester=course.semester or DEFAULT_SEMESTER,
            teacher_name=course.teacher_name or DEFAULT_TEACHER_NAME,
        )

    def list_by_student(self, student_id) -> list[EnrolledCourse]:
        student_id = normalize_id(student_id, "Student ID")
        with storage_errors("Failed to get student enrollments"):
            enrollments = self._enrollments.list_active(student_id=student_id)
        return [self._with_course_details(e) for e in enrollments]

    def _without_ghost_students(self, enrollments: Sequence[Enrollment]) -> list[Enrollment]:
        existing = self._users.existing_ids(e.student_id for e in enrollments)
        return [e for e in enrollments if e.student_id in existing]

    def list_by_course(self, course_id) -> list[Enrollment]:
        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to get course enrollments"):
            enrollments = self._enrollments.list_active(course_ids=[course_id])
            return self._without_ghost_students(enrollments)

    def list_by_course_fast(self, course_id, *, intake: Optional[str] = None, section: Optional[str] = None) -> list[Enrollment]:
        """Active enrollments without the student existence check (may include ghosts)."""

        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to get course enrollments"):
            return list(
                self._enrollments.list_active(
                    course_ids=[course_id],
                    intake=optional_text(intake),
                    section=optional_text(section),
                )
            )

    def list_by_teacher(self, teacher_id) -> list[Enrollment]:
        teacher_id = normalize_id(teacher_id, "Teacher ID")
        with storage_errors("Failed to get teacher enrollments"):
            courses = self._courses.list_courses(teacher_id=teacher_id, active_only=False)
            if not courses:
                return []
            enrollments = self._enrollments.list_active(course_ids=[c.course_id for c in courses])
            return self._without_ghost_students(enrollments)

    def drop(self, enrollment_id) -> None:
        enrollment_id = normalize_id(enrollment_id, "Enrollment ID")
        with storage_errors("Failed to drop enrollment"):
            if not self._enrollments.set_status(enrollment_id, EnrollmentStatus.DROPPED):
                raise NotFoundError("Enrollment not found")

    def available_courses_for_student(self, student_id, department: str, intake: Optional[str] = None) -> list[Course]:
        """Courses of the department the student is not actively enrolled in.

        `intake` is accepted for API compatibility; courses are not scoped by intake.
        """

        student_id = normalize_id(student_id, "Student ID")
        department = require_non_empty(department, "Department")
        with storage_errors("Failed to get available courses"):
            courses = self._courses.list_courses(department=department, active_only=False)
            enrolled = {e.course_id for e in self._enrollments.list_active(student_id=student_id)}
        return [c for c in courses if c.course_id not in enrolled]

    def cascade_delete_by_course(self, course_id) -> int:
        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to delete course enrollments"):
            removed = self._enrollments.delete_by_course(course_id)
        logger.info("Deleted %s enrollments for course %s", removed, course_id)
        return removed

    def cascade_delete_by_user(self, user_id) -> int:
        user_id = normalize_id(user_id, "User ID")
        with storage_errors("Failed to delete user enrollments"):
            removed = self._enrollments.delete_by_student(user_id)
        logger.info("Deleted %s enrollments for user %s", removed, user_id)
        return removed

    @staticmethod
    def snapshots_from_payload(data: dict) -> tuple[Optional[StudentSnapshot], Optional[CourseSnapshot]]:
        """Build snapshots from a request body; None when the body does not carry them."""

        student = None
        if data.get("studentName") or data.get("studentEmail"):
            student = StudentSnapshot(
                name=(data.get("studentName") or "").strip(),
                email=(data.get("studentEmail") or "").strip(),
                custom_id=optional_text(data.get("studentCustomId")),
                intake=optional_text(data.get("intake")),
                section=optional_text(data.get("section")),
            )
        course = None
        if data.get("courseCode") or data.get("courseName"):
            course = CourseSnapshot(
                course_code=(data.get("courseCode") or "").strip(),
                course_name=(data.get("courseName") or "").strip(),
                department=optional_text(data.get("department")),
            )
        if student is not None and not student.name:
            raise ValidationError("Student name is required")
        return student, course
