from __future__ import annotations

from typing import Iterable, Optional, Sequence

import mysql.connector

from ..core.enums import EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Enrollment, NewEnrollment
from .repository import EnrollmentRepository

_COLUMNS = """
    enrollment_id, student_id, course_id, student_name, student_email, student_custom_id,
    course_code, course_name, department, intake, section, status, enrolled_at
"""


def _to_enrollment(row: dict) -> Enrollment:
    return Enrollment(
        enrollment_id=int(row["enrollment_id"]),
        student_id=int(row["student_id"]),
        course_id=int(row["course_id"]),
        student_name=row.get("student_name") or "",
        student_email=row.get("student_email") or "",
        student_custom_id=row.get("student_custom_id"),
        course_code=row.get("course_code") or "",
        course_name=row.get("course_name") or "",
        department=row.get("department"),
        intake=row.get("intake"),
        section=row.get("section"),
        status=EnrollmentStatus(row["status"]),
        enrolled_at=row.get("enrolled_at"),
    )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM enrollments WHERE enrollment_id=%s", (int(enrollment_id),))
            row = fetchone(cur)
            return _to_enrollment(row) if row else None

    def get_active(self, student_id: int, course_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM enrollments
                WHERE student_id=%s AND course_id=%s AND status='active'
                """,
                (int(student_id), int(course_id)),
            )
            row = fetchone(cur)
            return _to_enrollment(row) if row else None

    def create(self, new: NewEnrollment) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO enrollments(student_id, course_id, student_name, student_email, student_custom_id,
                                            course_code, course_name, department, intake, section,
                                            status, active_flag, enrolled_at)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,'active',1,%s)
                    """,
                    (
                        new.student_id,
                        new.course_id,
                        new.student.name,
                        new.student.email,
                        new.student.custom_id,
                        new.course.course_code,
                        new.course.course_name,
                        new.course.department,
                        new.student.intake,
                        new.student.section,
                        new.enrolled_at,
                    ),
                )
            except mysql.connector.IntegrityError:
                # uq_enrollments_active: a concurrent enroll for the same pair won.
                return None
            return int(cur.lastrowid)

    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> bool:
        active_flag = 1 if status == EnrollmentStatus.ACTIVE else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT enrollment_id FROM enrollments WHERE enrollment_id=%s", (int(enrollment_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                "UPDATE enrollments SET status=%s, active_flag=%s WHERE enrollment_id=%s",
                (status.value, active_flag, int(enrollment_id)),
            )
            return True

    def list_active(
        self,
        *,
        student_id: Optional[int] = None,
        course_ids: Optional[Iterable[int]] = None,
        intake: Optional[str] = None,
        section: Optional[str] = None,
    ) -> Sequence[Enrollment]:
        clauses = ["status='active'"]
        params: list[object] = []

        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))
        if course_ids is not None:
            ids = sorted({int(c) for c in course_ids})
            if not ids:
                return []
            clause, in_params = in_clause("course_id", ids)
            clauses.append(clause)
            params.extend(in_params)
        if intake:
            clauses.append("intake=%s")
            params.append(intake)
        if section:
            clauses.append("section=%s")
            params.append(section)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM enrollments WHERE {where} ORDER BY enrollment_id",
                tuple(params),
            )
            return [_to_enrollment(r) for r in fetchall(cur)]

    def delete_by_course(self, course_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enrollments WHERE course_id=%s", (int(course_id),))
            return int(cur.rowcount)

    def delete_by_student(self, student_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enrollments WHERE student_id=%s", (int(student_id),))
            return int(cur.rowcount)
