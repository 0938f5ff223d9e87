from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..attendance.model import AttendanceRecord
from .marks import attendance_percentage, marks_from_percentage


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    attendance_percentage: int = 0
    attendance_marks: float = 0.0

    @classmethod
    def from_records(cls, records: Iterable[AttendanceRecord]) -> "AttendanceSummary":
        total = 0
        present = 0
        for r in records:
            total += 1
            if r.is_present:
                present += 1
        percentage = attendance_percentage(present, total)
        return cls(
            total_days=total,
            present_days=present,
            # Any non-present status counts as absent.
            absent_days=total - present,
            attendance_percentage=percentage,
            attendance_marks=marks_from_percentage(percentage),
        )

    def to_dict(self) -> dict:
        return {
            "totalDays": self.total_days,
            "presentDays": self.present_days,
            "absentDays": self.absent_days,
            "attendancePercentage": self.attendance_percentage,
            "attendanceMarks": self.attendance_marks,
        }


def _day(r: AttendanceRecord) -> dict:
    return {"date": r.attendance_date.strftime("%Y-%m-%d"), "status": r.status.value, "notes": r.notes}


@dataclass(frozen=True)
class StudentAttendanceRow:
    """One student's line in a course report (teacher view)."""

    student_id: int
    student_custom_id: Optional[str]
    student_name: str
    student_email: str
    intake: Optional[str]
    section: Optional[str]
    summary: AttendanceSummary
    records: list[AttendanceRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "studentId": self.student_id,
            "studentCustomId": self.student_custom_id,
            "studentName": self.student_name,
            "studentEmail": self.student_email,
            "intake": self.intake,
            "section": self.section,
            "attendance": [_day(r) for r in self.records],
        }
        data.update(self.summary.to_dict())
        return data


@dataclass(frozen=True)
class CourseAttendanceRow:
    """One course's line in a student's all-courses report."""

    course_id: int
    course_code: str
    course_name: str
    intake: Optional[str]
    section: Optional[str]
    summary: AttendanceSummary
    records: list[AttendanceRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "courseId": self.course_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "intake": self.intake,
            "section": self.section,
            "attendance": [_day(r) for r in self.records],
        }
        data.update(self.summary.to_dict())
        return data


@dataclass(frozen=True)
class StudentCourseReport:
    summary: AttendanceSummary
    records: list[AttendanceRecord]

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "attendanceRecords": [
                {**_day(r), "takenAt": r.taken_at.isoformat() if r.taken_at else None} for r in self.records
            ],
        }


@dataclass(frozen=True)
class EnrolledCourseRef:
    course_id: int
    course_code: str
    course_name: str
    intake: Optional[str]
    section: Optional[str]

    def to_dict(self) -> dict:
        return {
            "courseId": self.course_id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "intake": self.intake,
            "section": self.section,
        }


@dataclass(frozen=True)
class StudentTotalReport:
    summary: AttendanceSummary
    total_courses: int
    courses: list[EnrolledCourseRef]

    def to_dict(self) -> dict:
        total = self.summary.to_dict()
        total["totalCourses"] = self.total_courses
        return {"totalAttendance": total, "courses": [c.to_dict() for c in self.courses]}


@dataclass(frozen=True, order=True)
class MonthPeriod:
    year: int
    month: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def to_dict(self) -> dict:
        return {"year": self.year, "month": self.month, "label": self.label}


@dataclass(frozen=True)
class CourseStats:
    total_students: int
    total_records: int
    present_count: int
    absent_count: int
    attendance_rate: float

    def to_dict(self) -> dict:
        return {
            "totalStudents": self.total_students,
            "totalAttendanceRecords": self.total_records,
            "presentCount": self.present_count,
            "absentCount": self.absent_count,
            "attendanceRate": self.attendance_rate,
        }
