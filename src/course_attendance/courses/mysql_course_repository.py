from __future__ import annotations

from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, set_clause
from .model import Course
from .repository import CourseRepository

_COLUMNS = """
    course_id, course_code, course_name, department, credits, description,
    teacher_id, teacher_name, semester, is_active, created_at
"""

_UPDATABLE = {
    "course_code",
    "course_name",
    "department",
    "credits",
    "description",
    "teacher_id",
    "teacher_name",
    "semester",
    "is_active",
}


def _to_course(row: dict) -> Course:
    return Course(
        course_id=int(row["course_id"]),
        course_code=row["course_code"],
        course_name=row["course_name"],
        department=row["department"],
        credits=int(row.get("credits") or 0),
        description=row.get("description") or "",
        teacher_id=row.get("teacher_id"),
        teacher_name=row.get("teacher_name"),
        semester=row.get("semester") or "",
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses WHERE course_id=%s", (int(course_id),))
            row = fetchone(cur)
            return _to_course(row) if row else None

    def create_course(
        self,
        *,
        course_code: str,
        course_name: str,
        department: str,
        credits: int,
        description: str,
        teacher_id: Optional[int],
        teacher_name: Optional[str],
        semester: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(course_code, course_name, department, credits, description,
                                    teacher_id, teacher_name, semester, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (course_code, course_name, department, int(credits), description, teacher_id, teacher_name, semester),
            )
            return int(cur.lastrowid)

    def update_course(self, course_id: int, fields: dict[str, Any]) -> bool:
        assignments, params = set_clause(fields, _UPDATABLE)
        with db_cursor(self._conn_factory) as (_, cur):
            # rowcount is 0 for a no-op update, so existence is checked separately.
            cur.execute("SELECT course_id FROM courses WHERE course_id=%s", (int(course_id),))
            if not fetchone(cur):
                return False
            cur.execute(f"UPDATE courses SET {assignments} WHERE course_id=%s", (*params, int(course_id)))
            return True

    def delete_by_id(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE course_id=%s", (int(course_id),))
            return cur.rowcount > 0

    def list_courses(
        self,
        *,
        teacher_id: Optional[int] = None,
        department: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[Course]:
        clauses: list[str] = []
        params: list[object] = []

        if teacher_id is not None:
            clauses.append("teacher_id=%s")
            params.append(int(teacher_id))
        if department is not None:
            clauses.append("department=%s")
            params.append(department)
        if active_only:
            clauses.append("is_active=1")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM courses {where} ORDER BY course_id", tuple(params))
            return [_to_course(r) for r in fetchall(cur)]
