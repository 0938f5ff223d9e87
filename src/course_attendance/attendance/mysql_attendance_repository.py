from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, Sequence

import mysql.connector

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, set_clause
from .model import AttendanceEntry, AttendanceRecord, SessionKey
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, course_id, student_id, student_name, student_email, intake, section,
    attendance_date, status, notes, taken_by, taken_at
"""

_UPDATABLE = {"status", "notes"}

_SESSION_WHERE = "course_id=%s AND attendance_date=%s AND intake=%s AND section=%s"


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        course_id=int(row["course_id"]),
        student_id=int(row["student_id"]),
        attendance_date=row["attendance_date"],
        intake=row.get("intake") or "",
        section=row.get("section") or "",
        status=AttendanceStatus(row["status"]),
        notes=row.get("notes") or "",
        student_name=row.get("student_name"),
        student_email=row.get("student_email"),
        taken_by=row.get("taken_by"),
        taken_at=row.get("taken_at"),
    )


def _key_params(key: SessionKey) -> tuple:
    return (key.course_id, key.attendance_date, key.intake, key.section)


def _upsert(cur, entry: AttendanceEntry) -> int:
    # LAST_INSERT_ID(expr) makes lastrowid point at the updated row as well.
    cur.execute(
        """
        INSERT INTO attendance(course_id, student_id, student_name, student_email, intake, section,
                               attendance_date, status, notes, taken_by, taken_at)
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE
            attendance_id=LAST_INSERT_ID(attendance_id),
            student_name=COALESCE(VALUES(student_name), student_name),
            student_email=COALESCE(VALUES(student_email), student_email),
            status=VALUES(status),
            notes=VALUES(notes),
            taken_by=VALUES(taken_by),
            taken_at=VALUES(taken_at)
        """,
        (
            entry.course_id,
            entry.student_id,
            entry.student_name,
            entry.student_email,
            entry.intake,
            entry.section,
            entry.attendance_date,
            entry.status.value,
            entry.notes,
            entry.taken_by,
            entry.taken_at or now_local(),
        ),
    )
    return int(cur.lastrowid)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def upsert(self, entry: AttendanceEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return _upsert(cur, entry)

    def session_taken(self, key: SessionKey) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT 1 AS taken FROM attendance_sessions WHERE {_SESSION_WHERE} LIMIT 1", _key_params(key))
            if fetchone(cur):
                return True
            cur.execute(f"SELECT 1 AS taken FROM attendance WHERE {_SESSION_WHERE} LIMIT 1", _key_params(key))
            return fetchone(cur) is not None

    def record_session(self, key: SessionKey, entries: Sequence[AttendanceEntry]) -> Optional[int]:
        taken_by = entries[0].taken_by if entries else None
        taken_at = entries[0].taken_at if entries else None

        with db_cursor(self._conn_factory) as (conn, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(course_id, attendance_date, intake, section, taken_by, taken_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (*_key_params(key), taken_by, taken_at or now_local()),
                )
            except mysql.connector.IntegrityError:
                conn.rollback()
                return None

            # Rows written through the single-record path also mark the session as taken.
            cur.execute(f"SELECT 1 AS taken FROM attendance WHERE {_SESSION_WHERE} LIMIT 1", _key_params(key))
            if fetchone(cur):
                conn.rollback()
                return None

            for entry in entries:
                _upsert(cur, entry)
            return len(entries)

    def update_fields(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        values = dict(fields)
        if isinstance(values.get("status"), AttendanceStatus):
            values["status"] = values["status"].value
        assignments, params = set_clause(values, _UPDATABLE)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT attendance_id FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            if not fetchone(cur):
                return False
            cur.execute(f"UPDATE attendance SET {assignments} WHERE attendance_id=%s", (*params, int(attendance_id)))
            return True

    def delete_by_id(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, attendance_date, intake, section FROM attendance WHERE attendance_id=%s",
                (int(attendance_id),),
            )
            row = fetchone(cur)
            if not row:
                return False

            key = SessionKey(int(row["course_id"]), row["attendance_date"], row["intake"], row["section"])
            cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (int(attendance_id),))

            cur.execute(f"SELECT 1 AS remaining FROM attendance WHERE {_SESSION_WHERE} LIMIT 1", _key_params(key))
            if not fetchone(cur):
                cur.execute(f"DELETE FROM attendance_sessions WHERE {_SESSION_WHERE}", _key_params(key))
            return True

    def find(
        self,
        *,
        course_id: Optional[int] = None,
        student_id: Optional[int] = None,
        student_ids: Optional[Iterable[int]] = None,
        attendance_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        newest_first: bool = False,
    ) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if course_id is not None:
            clauses.append("course_id=%s")
            params.append(int(course_id))
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))
        if student_ids is not None:
            ids = sorted({int(s) for s in student_ids})
            if not ids:
                return []
            clause, in_params = in_clause("student_id", ids)
            clauses.append(clause)
            params.extend(in_params)
        if attendance_date is not None:
            clauses.append("attendance_date=%s")
            params.append(attendance_date)
        if start_date is not None:
            clauses.append("attendance_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("attendance_date<=%s")
            params.append(end_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        order = "DESC" if newest_first else "ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance {where} ORDER BY attendance_date {order}, attendance_id {order}",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
