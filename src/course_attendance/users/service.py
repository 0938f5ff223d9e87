from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.errors import storage_errors
from ..common.ids import normalize_id
from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.constants import DEFAULT_DEPARTMENT, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..enrollments.service import EnrollmentService
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> tuple[SessionUser, User]:
        email = (email or "").strip().lower()
        with storage_errors("Login failed"):
            user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role), user


class UserService:
    """Use case: register students, manage teacher accounts, delete users (admin)."""

    def __init__(self, users: UserRepository, enrollments: EnrollmentService):
        self._users = users
        self._enrollments = enrollments

    def _create_account(
        self,
        *,
        email: str,
        password: str,
        name: str,
        role: Role,
        student_code: Optional[str] = None,
        intake: Optional[str] = None,
        section: Optional[str] = None,
        department: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> User:
        email = require_email(email)
        name = require_non_empty(name, "Name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("User with this email already exists")

        if role == Role.STUDENT and student_code and self._users.get_by_student_code(student_code):
            raise ValidationError("Student with this ID already exists")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            name=name,
            role=role,
            student_code=student_code,
            intake=intake,
            section=section,
            department=department,
            created_by=created_by,
        )
        created = self._users.get_by_id(user_id)
        if not created:
            raise NotFoundError("User not found")
        return created

    def register_student(
        self,
        *,
        email: str,
        password: str,
        name: str,
        student_code: str,
        intake: str,
        section: str,
        department: Optional[str] = None,
    ) -> User:
        with storage_errors("Student registration failed"):
            return self._create_account(
                email=email,
                password=password,
                name=name,
                role=Role.STUDENT,
                student_code=require_non_empty(student_code, "Student ID"),
                intake=require_non_empty(intake, "Intake"),
                section=require_non_empty(section, "Section"),
                department=optional_text(department) or DEFAULT_DEPARTMENT,
            )

    def create_teacher(
        self,
        *,
        current_role: Role,
        created_by: int,
        email: str,
        password: str,
        name: str,
        department: Optional[str] = None,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can create teacher accounts")

        with storage_errors("Failed to create teacher"):
            return self._create_account(
                email=email,
                password=password,
                name=name,
                role=Role.TEACHER,
                department=optional_text(department) or DEFAULT_DEPARTMENT,
                created_by=int(created_by),
            )

    def ensure_admin(self, *, email: str, password: str, name: str) -> User:
        """Seed the bootstrap admin once; later calls return the existing account."""

        with storage_errors("Failed to bootstrap admin"):
            existing = self._users.get_by_email(require_email(email))
            if existing:
                logger.info("Admin account already exists: %s", existing.email)
                return existing
            admin = self._create_account(email=email, password=password, name=name, role=Role.ADMIN)
        logger.info("Admin account created: %s", admin.email)
        return admin

    def get_user(self, user_id) -> User:
        user_id = normalize_id(user_id, "User ID")
        with storage_errors("Failed to get user"):
            user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self, *, role: Optional[str] = None) -> Sequence[User]:
        role_filter = None
        if role:
            try:
                role_filter = Role(role)
            except ValueError:
                raise ValidationError("Role is invalid")
        with storage_errors("Failed to get users"):
            return self._users.list_users(role=role_filter)

    def delete_user(self, *, current_role: Role, user_id) -> int:
        """Delete a user and hard-delete their enrollments. Returns enrollments removed."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        user_id = normalize_id(user_id, "User ID")
        with storage_errors("Failed to delete user"):
            user = self._users.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            if user.role == Role.ADMIN:
                raise ValidationError("Cannot delete an admin account")

            removed = self._enrollments.cascade_delete_by_user(user_id)
            if not self._users.delete_by_id(user_id):
                raise NotFoundError("User not found")

        logger.info("Deleted user %s (%s enrollments removed)", user_id, removed)
        return removed
