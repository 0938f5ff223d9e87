from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local, to_date
from ..common.errors import storage_errors
from ..common.ids import normalize_id, normalize_optional_id
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyRecordedError, NotFoundError, ValidationError
from ..enrollments.repository import EnrollmentRepository
from .model import AttendanceEntry, AttendanceRecord, BulkAttendanceResult, IntakeSections, SessionKey
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ALREADY_RECORDED_MESSAGE = "Attendance already exists for this date, intake, and section"


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value}")


def _label(value: Optional[str]) -> str:
    return (value or "").strip()


class AttendanceService:
    """Records daily attendance for a course session.

    Business rules:
    - One row per (course, student, date, intake, section); writes are upserts.
    - A session (course, date, intake, section) is taken once: after any row exists
      for it, bulk submissions for the same session are rejected as a whole.
    - Students without a status are skipped, never defaulted to absent.
    """

    def __init__(self, attendance: AttendanceRepository, enrollments: EnrollmentRepository):
        self._attendance = attendance
        self._enrollments = enrollments

    def take_bulk(
        self,
        course_id,
        attendance_date,
        intake: Optional[str],
        section: Optional[str],
        statuses: Mapping[Any, Any],
        taken_by,
        *,
        notes: str = "",
        now: datetime | None = None,
    ) -> BulkAttendanceResult:
        now = now or now_local()
        key = SessionKey(
            course_id=normalize_id(course_id, "Course ID"),
            attendance_date=to_date(attendance_date),
            intake=_label(intake),
            section=_label(section),
        )
        teacher_id = normalize_optional_id(taken_by, "Teacher ID")

        picked: dict[int, AttendanceStatus] = {}
        for raw_student_id, raw_status in (statuses or {}).items():
            if not raw_status:
                continue
            picked[normalize_id(raw_student_id, "Student ID")] = parse_status(raw_status)

        with storage_errors("Failed to take bulk attendance"):
            if not picked:
                if self._attendance.session_taken(key):
                    raise AlreadyRecordedError(ALREADY_RECORDED_MESSAGE)
                return BulkAttendanceResult(success=True, created=0, message="No attendance records to create")

            roster = {e.student_id: e for e in self._enrollments.list_active(course_ids=[key.course_id])}
            entries = [
                AttendanceEntry(
                    course_id=key.course_id,
                    student_id=student_id,
                    attendance_date=key.attendance_date,
                    intake=key.intake,
                    section=key.section,
                    status=status,
                    notes=notes or "",
                    student_name=roster[student_id].student_name if student_id in roster else None,
                    student_email=roster[student_id].student_email if student_id in roster else None,
                    taken_by=teacher_id,
                    taken_at=now,
                )
                for student_id, status in picked.items()
            ]

            created = self._attendance.record_session(key, entries)

        if created is None:
            logger.info(
                "Rejected attendance for course %s on %s (%s/%s): already recorded",
                key.course_id,
                key.attendance_date,
                key.intake,
                key.section,
            )
            raise AlreadyRecordedError(ALREADY_RECORDED_MESSAGE)

        logger.info("Attendance taken for course %s on %s: %s rows", key.course_id, key.attendance_date, created)
        return BulkAttendanceResult(success=True, created=created, message=f"Attendance taken for {created} students")

    def record_one(
        self,
        *,
        course_id,
        student_id,
        attendance_date,
        intake: Optional[str],
        section: Optional[str],
        status,
        notes: Optional[str] = "",
        taken_by=None,
        student_name: Optional[str] = None,
        student_email: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        """Idempotent single-row upsert: same key twice overwrites, never duplicates."""

        entry = AttendanceEntry(
            course_id=normalize_id(course_id, "Course ID"),
            student_id=normalize_id(student_id, "Student ID"),
            attendance_date=to_date(attendance_date),
            intake=_label(intake),
            section=_label(section),
            status=parse_status(status),
            notes=notes or "",
            student_name=student_name,
            student_email=student_email,
            taken_by=normalize_optional_id(taken_by, "Teacher ID"),
            taken_at=now or now_local(),
        )
        with storage_errors("Failed to create attendance"):
            attendance_id = self._attendance.upsert(entry)
            record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def update(self, attendance_id, patch: Mapping[str, Any]) -> AttendanceRecord:
        attendance_id = normalize_id(attendance_id, "Attendance ID")

        unknown = sorted(set(patch) - {"status", "notes"})
        if unknown:
            raise ValidationError(f"Unsupported fields: {', '.join(unknown)}")
        if not patch:
            raise ValidationError("Nothing to update")

        fields: dict[str, Any] = {}
        if "status" in patch:
            fields["status"] = parse_status(patch["status"])
        if "notes" in patch:
            fields["notes"] = (patch["notes"] or "").strip()

        with storage_errors("Failed to update attendance"):
            if not self._attendance.update_fields(attendance_id, fields):
                raise NotFoundError("Attendance record not found")
            return self._attendance.get_by_id(attendance_id)

    def delete(self, attendance_id) -> None:
        attendance_id = normalize_id(attendance_id, "Attendance ID")
        with storage_errors("Failed to delete attendance"):
            if not self._attendance.delete_by_id(attendance_id):
                raise NotFoundError("Attendance record not found")

    def by_course(self, course_id, attendance_date=None) -> list[AttendanceRecord]:
        course_id = normalize_id(course_id, "Course ID")
        day = to_date(attendance_date) if attendance_date else None
        with storage_errors("Failed to get course attendance"):
            return list(self._attendance.find(course_id=course_id, attendance_date=day))

    def by_student(self, student_id, course_id=None) -> list[AttendanceRecord]:
        student_id = normalize_id(student_id, "Student ID")
        course_id = normalize_optional_id(course_id, "Course ID")
        with storage_errors("Failed to get student attendance"):
            return list(self._attendance.find(student_id=student_id, course_id=course_id, newest_first=True))

    def intakes_and_sections(self, course_id) -> IntakeSections:
        """Distinct intakes/sections among the course's active enrollments."""

        course_id = normalize_id(course_id, "Course ID")
        with storage_errors("Failed to get available intakes and sections"):
            enrollments = self._enrollments.list_active(course_ids=[course_id])

        intakes = {e.intake for e in enrollments if e.intake}
        sections = {e.section for e in enrollments if e.section}
        by_intake: dict[str, set[str]] = {}
        for e in enrollments:
            if e.intake and e.section:
                by_intake.setdefault(e.intake, set()).add(e.section)

        return IntakeSections(
            intakes=sorted(intakes),
            sections=sorted(sections),
            intake_section_map={intake: sorted(s) for intake, s in sorted(by_intake.items())},
        )
