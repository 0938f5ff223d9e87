from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): User.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    `student_code` is the external student ID chosen at registration,
    distinct from the internal `user_id`.
    """

    user_id: int
    email: str
    password_hash: str
    name: str
    role: Role
    student_code: Optional[str] = None
    intake: Optional[str] = None
    section: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        # password_hash never leaves the service boundary.
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
            "studentId": self.student_code,
            "intake": self.intake,
            "section": self.section,
            "department": self.department,
            "isActive": self.is_active,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
