from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollments.repository import EnrollmentRepository
from .enrollments.service import EnrollmentService
from .reports.service import AttendanceReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    courses_repo: CourseRepository
    enrollments_repo: EnrollmentRepository
    attendance_repo: AttendanceRepository

    auth_service: AuthService
    user_service: UserService
    course_service: CourseService
    enrollment_service: EnrollmentService
    attendance_service: AttendanceService
    report_service: AttendanceReportService


def wire_container(
    *,
    users_repo: UserRepository,
    courses_repo: CourseRepository,
    enrollments_repo: EnrollmentRepository,
    attendance_repo: AttendanceRepository,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    enrollment_service = EnrollmentService(enrollments_repo, users_repo, courses_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        courses_repo=courses_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, enrollment_service),
        course_service=CourseService(courses_repo, enrollment_service),
        enrollment_service=enrollment_service,
        attendance_service=AttendanceService(attendance_repo, enrollments_repo),
        report_service=AttendanceReportService(attendance_repo, enrollments_repo),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        courses_repo=MySQLCourseRepository(conn),
        enrollments_repo=MySQLEnrollmentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        conn=conn,
    )
