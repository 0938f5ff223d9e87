from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_CREDITS, DEFAULT_SEMESTER


@dataclass(frozen=True)
class Course:
    """Thực thể miền (domain): Học phần.

    `course_code` is not unique: several offerings may share a code.
    `teacher_name` is a denormalized copy of the owner's name.
    """

    course_id: int
    course_code: str
    course_name: str
    department: str
    credits: int = DEFAULT_CREDITS
    description: str = ""
    teacher_id: Optional[int] = None
    teacher_name: Optional[str] = None
    semester: str = DEFAULT_SEMESTER
    is_active: bool = True
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "department": self.department,
            "credits": self.credits,
            "description": self.description,
            "teacherId": self.teacher_id,
            "teacherName": self.teacher_name,
            "semester": self.semester,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
