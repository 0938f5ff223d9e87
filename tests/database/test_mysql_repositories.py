from __future__ import annotations

from datetime import date, datetime

import mysql.connector

from course_attendance.attendance.model import AttendanceEntry, SessionKey
from course_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from course_attendance.core.enums import AttendanceStatus
from course_attendance.enrollments.model import CourseSnapshot, NewEnrollment, StudentSnapshot
from course_attendance.enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository


class ScriptedCursor:
    """Records executed SQL; raises or returns rows for statements containing a given fragment."""

    def __init__(self, *, fail_on=None, rows=None):
        self.fail_on = fail_on or {}
        self.rows = rows or {}
        self.executed: list[str] = []
        self.lastrowid = 0
        self._pending = None

    def execute(self, sql, params=None):
        sql = " ".join(sql.split())
        self.executed.append(sql)
        for fragment, error in self.fail_on.items():
            if fragment in sql:
                raise error
        self._pending = next((row for fragment, row in self.rows.items() if fragment in sql), None)
        if sql.startswith("INSERT"):
            self.lastrowid += 1

    def fetchone(self):
        row, self._pending = self._pending, None
        return row

    def fetchall(self):
        return []

    def close(self):
        pass

    def ran(self, prefix: str) -> list[str]:
        return [s for s in self.executed if s.startswith(prefix)]


class ScriptedConn:
    def __init__(self, cursor: ScriptedCursor):
        self.cur = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class OneConnFactory:
    def __init__(self, conn: ScriptedConn):
        self.conn = conn

    def connect(self):
        return self.conn


KEY = SessionKey(course_id=7, attendance_date=date(2024, 10, 7), intake="50", section="A")


def _entries(*student_ids):
    return [
        AttendanceEntry(
            course_id=KEY.course_id,
            student_id=sid,
            attendance_date=KEY.attendance_date,
            intake=KEY.intake,
            section=KEY.section,
            status=AttendanceStatus.PRESENT,
            taken_by=3,
            taken_at=datetime(2024, 10, 7, 9, 0, 0),
        )
        for sid in student_ids
    ]


def _attendance_repo(cursor: ScriptedCursor):
    conn = ScriptedConn(cursor)
    return MySQLAttendanceRepository(OneConnFactory(conn)), conn


def test_record_session_claims_then_upserts_every_entry():
    cur = ScriptedCursor()
    repo, conn = _attendance_repo(cur)

    assert repo.record_session(KEY, _entries(11, 12)) == 2

    assert cur.executed[0].startswith("INSERT INTO attendance_sessions")
    assert len(cur.ran("INSERT INTO attendance(")) == 2
    assert conn.committed and not conn.rolled_back


def test_record_session_lost_claim_writes_nothing():
    cur = ScriptedCursor(fail_on={"INSERT INTO attendance_sessions": mysql.connector.IntegrityError("Duplicate entry")})
    repo, conn = _attendance_repo(cur)

    assert repo.record_session(KEY, _entries(11, 12)) is None

    assert conn.rolled_back
    assert cur.ran("INSERT INTO attendance(") == []


def test_record_session_rejects_when_rows_already_exist():
    cur = ScriptedCursor(rows={"SELECT 1 AS taken FROM attendance WHERE": {"taken": 1}})
    repo, conn = _attendance_repo(cur)

    assert repo.record_session(KEY, _entries(11)) is None

    assert conn.rolled_back
    assert cur.ran("INSERT INTO attendance(") == []


_ROW = {"course_id": 7, "attendance_date": date(2024, 10, 7), "intake": "50", "section": "A"}


def test_delete_last_row_releases_session_claim():
    cur = ScriptedCursor(rows={"SELECT course_id, attendance_date": _ROW})
    repo, _ = _attendance_repo(cur)

    assert repo.delete_by_id(5) is True

    assert cur.ran("DELETE FROM attendance WHERE")
    assert len(cur.ran("DELETE FROM attendance_sessions")) == 1


def test_delete_keeps_claim_while_rows_remain():
    cur = ScriptedCursor(rows={"SELECT course_id, attendance_date": _ROW, "SELECT 1 AS remaining": {"remaining": 1}})
    repo, _ = _attendance_repo(cur)

    assert repo.delete_by_id(5) is True

    assert cur.ran("DELETE FROM attendance_sessions") == []


def test_delete_unknown_row():
    cur = ScriptedCursor()
    repo, _ = _attendance_repo(cur)

    assert repo.delete_by_id(5) is False
    assert cur.ran("DELETE") == []


def _new_enrollment() -> NewEnrollment:
    return NewEnrollment(
        student_id=11,
        course_id=7,
        student=StudentSnapshot(name="Rohan", email="rohan@uni.edu", intake="50", section="A"),
        course=CourseSnapshot(course_code="CSE101", course_name="Intro"),
        enrolled_at=datetime(2024, 9, 1, 8, 0, 0),
    )


def test_enrollment_create_returns_new_id():
    cur = ScriptedCursor()
    repo = MySQLEnrollmentRepository(OneConnFactory(ScriptedConn(cur)))

    assert repo.create(_new_enrollment()) == 1


def test_enrollment_create_duplicate_active_pair_returns_none():
    duplicate = mysql.connector.IntegrityError("Duplicate entry for key 'uq_enrollments_active'")
    cur = ScriptedCursor(fail_on={"INSERT INTO enrollments": duplicate})
    repo = MySQLEnrollmentRepository(OneConnFactory(ScriptedConn(cur)))

    assert repo.create(_new_enrollment()) is None
