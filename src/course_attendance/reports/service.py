from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, to_date
from ..common.errors import storage_errors
from ..common.ids import normalize_id, normalize_optional_id
from ..common.validators import optional_text
from ..core.exceptions import ValidationError
from ..enrollments.repository import EnrollmentRepository
from .model import (
    AttendanceSummary,
    CourseAttendanceRow,
    CourseStats,
    EnrolledCourseRef,
    MonthPeriod,
    StudentAttendanceRow,
    StudentCourseReport,
    StudentTotalReport,
)


def _date_range(start, end) -> tuple[Optional[date], Optional[date]]:
    start_d = to_date(start, "Start date") if start else None
    end_d = to_date(end, "End date") if end else None
    if start_d and end_d and start_d > end_d:
        raise ValidationError("Start date must not be after end date")
    return start_d, end_d


def _group_by(records, key) -> dict[int, list[AttendanceRecord]]:
    grouped: dict[int, list[AttendanceRecord]] = {}
    for r in records:
        grouped.setdefault(key(r), []).append(r)
    return grouped


class AttendanceReportService:
    """Read-only aggregation of enrollment + attendance data.

    Report populations come from active enrollments: a student (or course) with
    no attendance rows still appears, with all-zero numbers.
    """

    def __init__(self, attendance: AttendanceRepository, enrollments: EnrollmentRepository):
        self._attendance = attendance
        self._enrollments = enrollments

    def course_report(
        self,
        course_id,
        *,
        intake: Optional[str] = None,
        section: Optional[str] = None,
        start=None,
        end=None,
    ) -> list[StudentAttendanceRow]:
        course_id = normalize_id(course_id, "Course ID")
        start_d, end_d = _date_range(start, end)

        with storage_errors("Failed to get teacher attendance report"):
            enrollments = self._enrollments.list_active(
                course_ids=[course_id],
                intake=optional_text(intake),
                section=optional_text(section),
            )
            if not enrollments:
                return []
            records = self._attendance.find(
                course_id=course_id,
                student_ids=[e.student_id for e in enrollments],
                start_date=start_d,
                end_date=end_d,
            )

        by_student = _group_by(records, lambda r: r.student_id)
        rows: list[StudentAttendanceRow] = []
        seen: set[int] = set()
        for e in enrollments:
            if e.student_id in seen:
                continue
            seen.add(e.student_id)
            student_records = by_student.get(e.student_id, [])
            rows.append(
                StudentAttendanceRow(
                    student_id=e.student_id,
                    student_custom_id=e.student_custom_id,
                    student_name=e.student_name,
                    student_email=e.student_email,
                    intake=e.intake,
                    section=e.section,
                    summary=AttendanceSummary.from_records(student_records),
                    records=student_records,
                )
            )
        return rows

    def course_monthly_report(
        self,
        course_id,
        *,
        month: int,
        year: int,
        intake: Optional[str] = None,
        section: Optional[str] = None,
    ) -> list[StudentAttendanceRow]:
        start, end = month_bounds(year, month)
        return self.course_report(course_id, intake=intake, section=section, start=start, end=end)

    def student_course_report(self, student_id, course_id, *, start=None, end=None) -> StudentCourseReport:
        student_id = normalize_id(student_id, "Student ID")
        course_id = normalize_id(course_id, "Course ID")
        start_d, end_d = _date_range(start, end)

        with storage_errors("Failed to get student attendance report"):
            records = list(
                self._attendance.find(course_id=course_id, student_id=student_id, start_date=start_d, end_date=end_d)
            )
        return StudentCourseReport(summary=AttendanceSummary.from_records(records), records=records)

    def student_monthly_report(self, student_id, course_id, *, month: int, year: int) -> StudentCourseReport:
        start, end = month_bounds(year, month)
        return self.student_course_report(student_id, course_id, start=start, end=end)

    def student_total(self, student_id) -> StudentTotalReport:
        """All of a student's attendance rows, regardless of course."""

        student_id = normalize_id(student_id, "Student ID")
        with storage_errors("Failed to get student total attendance"):
            enrollments = self._enrollments.list_active(student_id=student_id)
            if not enrollments:
                return StudentTotalReport(summary=AttendanceSummary(), total_courses=0, courses=[])
            records = self._attendance.find(student_id=student_id)

        courses = [
            EnrolledCourseRef(
                course_id=e.course_id,
                course_code=e.course_code,
                course_name=e.course_name,
                intake=e.intake,
                section=e.section,
            )
            for e in enrollments
        ]
        return StudentTotalReport(
            summary=AttendanceSummary.from_records(records),
            total_courses=len({e.course_id for e in enrollments}),
            courses=courses,
        )

    def student_all_courses(self, student_id) -> list[CourseAttendanceRow]:
        student_id = normalize_id(student_id, "Student ID")
        with storage_errors("Failed to get student all courses report"):
            enrollments = self._enrollments.list_active(student_id=student_id)
            if not enrollments:
                return []
            records = self._attendance.find(student_id=student_id, newest_first=True)

        by_course = _group_by(records, lambda r: r.course_id)
        rows: list[CourseAttendanceRow] = []
        seen: set[int] = set()
        for e in enrollments:
            if e.course_id in seen:
                continue
            seen.add(e.course_id)
            course_records = by_course.get(e.course_id, [])
            rows.append(
                CourseAttendanceRow(
                    course_id=e.course_id,
                    course_code=e.course_code,
                    course_name=e.course_name,
                    intake=e.intake,
                    section=e.section,
                    summary=AttendanceSummary.from_records(course_records),
                    records=course_records,
                )
            )
        return rows

    def available_months(self, course_id, student_id=None) -> list[MonthPeriod]:
        """Distinct (year, month) periods with attendance, most recent first."""

        course_id = normalize_id(course_id, "Course ID")
        student_id = normalize_optional_id(student_id, "Student ID")
        with storage_errors("Failed to get available months"):
            records = self._attendance.find(course_id=course_id, student_id=student_id)

        periods = {MonthPeriod(r.attendance_date.year, r.attendance_date.month) for r in records}
        return sorted(periods, reverse=True)

    def course_stats(self, course_id, *, intake: Optional[str] = None, section: Optional[str] = None) -> CourseStats:
        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to get attendance stats"):
            enrollments = self._enrollments.list_active(
                course_ids=[course_id],
                intake=optional_text(intake),
                section=optional_text(section),
            )
            student_ids = {e.student_id for e in enrollments}
            records = self._attendance.find(course_id=course_id, student_ids=student_ids) if student_ids else []

        present = sum(1 for r in records if r.is_present)
        total = len(records)
        rate = 0.0
        if total:
            rate = float((Decimal(present) * 100 / Decimal(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
        return CourseStats(
            total_students=len(student_ids),
            total_records=total,
            present_count=present,
            absent_count=total - present,
            attendance_rate=rate,
        )
