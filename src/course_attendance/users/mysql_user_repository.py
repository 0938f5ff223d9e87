from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, email, password_hash, name, role, student_code, intake, section,
    department, is_active, created_by, created_at
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        name=row.get("name") or "",
        role=Role(row["role"]),
        student_code=row.get("student_code"),
        intake=row.get("intake"),
        section=row.get("section"),
        department=row.get("department"),
        is_active=bool(row.get("is_active", True)),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def get_by_student_code(self, student_code: str) -> Optional[User]:
        return self._get_one("student_code", student_code)

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        role: Role,
        student_code: Optional[str] = None,
        intake: Optional[str] = None,
        section: Optional[str] = None,
        department: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, password_hash, name, role, student_code, intake, section,
                                  department, created_by, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (email, password_hash, name, role.value, student_code, intake, section, department, created_by),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY user_id")
            else:
                cur.execute(f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY user_id", (role.value,))
            return [_to_user(r) for r in fetchall(cur)]

    def existing_ids(self, user_ids: Iterable[int]) -> set[int]:
        ids = sorted({int(i) for i in user_ids})
        if not ids:
            return set()
        clause, params = in_clause("user_id", ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT user_id FROM users WHERE {clause}", tuple(params))
            return {int(r["user_id"]) for r in fetchall(cur)}
