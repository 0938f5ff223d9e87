from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class SessionKey:
    """One taken class session: course + day + intake + section."""

    course_id: int
    attendance_date: date
    intake: str
    section: str


@dataclass(frozen=True)
class AttendanceEntry:
    """Values written by an upsert keyed on (course, student, date, intake, section)."""

    course_id: int
    student_id: int
    attendance_date: date
    intake: str
    section: str
    status: AttendanceStatus
    notes: str = ""
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    taken_by: Optional[int] = None
    taken_at: Optional[datetime] = None

    @property
    def session_key(self) -> SessionKey:
        return SessionKey(self.course_id, self.attendance_date, self.intake, self.section)


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi điểm danh của một sinh viên trong một buổi học."""

    attendance_id: int
    course_id: int
    student_id: int
    attendance_date: date
    intake: str
    section: str
    status: AttendanceStatus
    notes: str = ""
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    taken_by: Optional[int] = None
    taken_at: Optional[datetime] = None

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "courseId": self.course_id,
            "studentId": self.student_id,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "intake": self.intake,
            "section": self.section,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "notes": self.notes,
            "takenBy": self.taken_by,
            "takenAt": self.taken_at.isoformat() if self.taken_at else None,
        }


@dataclass(frozen=True)
class BulkAttendanceResult:
    success: bool
    created: int
    message: str
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "created": self.created, "errors": list(self.errors), "message": self.message}


@dataclass(frozen=True)
class IntakeSections:
    intakes: list[str]
    sections: list[str]
    intake_section_map: dict[str, list[str]]

    def to_dict(self) -> dict:
        return {"intakes": self.intakes, "sections": self.sections, "intakeSectionMap": self.intake_section_map}
