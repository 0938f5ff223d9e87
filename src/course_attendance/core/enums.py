from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class EnrollmentStatus(str, Enum):
    """Trạng thái đăng ký học phần."""

    ACTIVE = "active"
    DROPPED = "dropped"


class AttendanceStatus(str, Enum):
    """Trạng thái điểm danh lưu trong CSDL.

    LATE is accepted and stored but has no dedicated handling: reports count
    every non-PRESENT status as absent.
    """

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
