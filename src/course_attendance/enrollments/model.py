from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EnrollmentStatus


@dataclass(frozen=True)
class StudentSnapshot:
    """Student display fields copied onto an enrollment at creation time."""

    name: str
    email: str
    custom_id: Optional[str] = None
    intake: Optional[str] = None
    section: Optional[str] = None


@dataclass(frozen=True)
class CourseSnapshot:
    """Course display fields copied onto an enrollment at creation time."""

    course_code: str
    course_name: str
    department: Optional[str] = None


@dataclass(frozen=True)
class NewEnrollment:
    student_id: int
    course_id: int
    student: StudentSnapshot
    course: CourseSnapshot
    enrolled_at: datetime


@dataclass(frozen=True)
class Enrollment:
    """Thực thể miền (domain): Đăng ký học phần của một sinh viên.

    Display fields are snapshots; later edits to the user or course are not
    propagated here.
    """

    enrollment_id: int
    student_id: int
    course_id: int
    student_name: str
    student_email: str
    student_custom_id: Optional[str]
    course_code: str
    course_name: str
    department: Optional[str]
    intake: Optional[str]
    section: Optional[str]
    status: EnrollmentStatus
    enrolled_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.enrollment_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "studentCustomId": self.student_custom_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "department": self.department,
            "intake": self.intake,
            "section": self.section,
            "status": self.status.value,
            "enrolledAt": self.enrolled_at.isoformat() if self.enrolled_at else None,
        }


@dataclass(frozen=True)
class EnrolledCourse:
    """Read-model: a student's enrollment plus live fields from the current course."""

    enrollment: Enrollment
    credits: int
    description: str
    semester: str
    teacher_name: str

    def to_dict(self) -> dict:
        data = self.enrollment.to_dict()
        data.update(
            {
                "credits": self.credits,
                "description": self.description,
                "semester": self.semester,
                "teacherName": self.teacher_name,
            }
        )
        return data
