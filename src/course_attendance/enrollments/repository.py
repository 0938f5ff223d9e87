from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import EnrollmentStatus
from .model import Enrollment, NewEnrollment


class EnrollmentRepository(Protocol):
    """Giao diện repository cho Enrollment.

    Ids are canonical ints; the service normalizes them before any call.
    """

    def get_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def get_active(self, student_id: int, course_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def create(self, new: NewEnrollment) -> Optional[int]:
        """Insert an active enrollment.

        Returns None when the store already holds an active enrollment for the
        same (student_id, course_id) pair.
        """

        raise NotImplementedError

    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> bool:
        raise NotImplementedError

    def list_active(
        self,
        *,
        student_id: Optional[int] = None,
        course_ids: Optional[Iterable[int]] = None,
        intake: Optional[str] = None,
        section: Optional[str] = None,
    ) -> Sequence[Enrollment]:
        raise NotImplementedError

    def delete_by_course(self, course_id: int) -> int:
        raise NotImplementedError

    def delete_by_student(self, student_id: int) -> int:
        raise NotImplementedError
