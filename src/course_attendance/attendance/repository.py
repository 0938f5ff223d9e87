from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional, Protocol, Sequence

from .model import AttendanceEntry, AttendanceRecord, SessionKey


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, entry: AttendanceEntry) -> int:
        """Insert or overwrite the row for the entry's (course, student, date, intake, section)."""

        raise NotImplementedError

    def session_taken(self, key: SessionKey) -> bool:
        raise NotImplementedError

    def record_session(self, key: SessionKey, entries: Sequence[AttendanceEntry]) -> Optional[int]:
        """Atomically claim `key` and upsert every entry.

        Returns None (and writes nothing) when the session was already claimed or
        any attendance row exists for the key; otherwise the number of rows written.
        """

        raise NotImplementedError

    def update_fields(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, attendance_id: int) -> bool:
        """Delete one row; releases the session claim when it was the last row of its session."""

        raise NotImplementedError

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
        """Rows matching every given filter, ordered by date (ascending unless newest_first)."""

        raise NotImplementedError
