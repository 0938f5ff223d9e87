from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import Course


class CourseRepository(Protocol):
    def get_by_id(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_course(self, course_id: int, fields: dict[str, Any]) -> bool:
        """Partial update. `fields` uses model attribute names."""

        raise NotImplementedError

    def delete_by_id(self, course_id: int) -> bool:
        raise NotImplementedError

    def list_courses(
        self,
        *,
        teacher_id: Optional[int] = None,
        department: Optional[str] = None,
        active_only: bool = True,
    ) -> Sequence[Course]:
        raise NotImplementedError
