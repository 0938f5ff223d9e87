from __future__ import annotations

import pytest

from course_attendance.core.enums import Role
from course_attendance.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError


def _register(container, **overrides):
    data = dict(
        email="Alice@Uni.edu",
        password="secret123",
        name="Alice",
        student_code="S100",
        intake="50",
        section="A",
    )
    data.update(overrides)
    return container.user_service.register_student(**data)


def test_register_student_normalizes_email_and_hides_password(container):
    user = _register(container)

    assert user.role == Role.STUDENT
    assert user.email == "alice@uni.edu"
    assert user.department == "CSE"
    payload = user.to_dict()
    assert "password_hash" not in payload and "password" not in payload
    assert payload["studentId"] == "S100"


def test_register_rejects_duplicate_email(container):
    _register(container)
    with pytest.raises(ValidationError, match="email already exists"):
        _register(container, email="alice@uni.edu", student_code="S200")


def test_register_rejects_duplicate_student_code(container):
    _register(container)
    with pytest.raises(ValidationError, match="Student with this ID already exists"):
        _register(container, email="bob@uni.edu")


@pytest.mark.parametrize(
    "overrides",
    [
        {"password": "12345"},
        {"name": "  "},
        {"email": "not-an-email"},
        {"intake": ""},
        {"section": None},
    ],
)
def test_register_validates_input(container, overrides):
    with pytest.raises(ValidationError):
        _register(container, **overrides)


def test_login_success_and_failures(container):
    user = _register(container)

    session_user, returned = container.auth_service.authenticate("ALICE@uni.edu", "secret123")
    assert session_user.user_id == user.user_id
    assert session_user.role == Role.STUDENT
    assert returned.email == user.email

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("alice@uni.edu", "wrong-pass")
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("nobody@uni.edu", "secret123")


def test_only_admin_can_create_teacher(container, admin, teacher):
    with pytest.raises(AuthorizationError):
        container.user_service.create_teacher(
            current_role=Role.TEACHER,
            created_by=teacher.user_id,
            email="t2@uni.edu",
            password="secret123",
            name="T2",
        )

    created = container.user_service.create_teacher(
        current_role=Role.ADMIN,
        created_by=admin.user_id,
        email="t2@uni.edu",
        password="secret123",
        name="T2",
    )
    assert created.role == Role.TEACHER
    assert created.created_by == admin.user_id


def test_list_users_filters_by_role(container, admin, teacher, make_student):
    make_student()
    make_student()

    assert {u.role for u in container.user_service.list_users()} == {Role.ADMIN, Role.TEACHER, Role.STUDENT}
    assert len(container.user_service.list_users(role="student")) == 2
    with pytest.raises(ValidationError):
        container.user_service.list_users(role="janitor")


def test_delete_user_cascades_enrollments(container, store, course, make_student):
    student = make_student()
    container.enrollment_service.enroll(student.user_id, course.course_id)

    removed = container.user_service.delete_user(current_role=Role.ADMIN, user_id=str(student.user_id))

    assert removed == 1
    assert student.user_id not in store.users
    assert store.enrollments == {}


def test_delete_user_guards(container, admin, make_student):
    student = make_student()

    with pytest.raises(AuthorizationError):
        container.user_service.delete_user(current_role=Role.TEACHER, user_id=student.user_id)
    with pytest.raises(ValidationError, match="admin"):
        container.user_service.delete_user(current_role=Role.ADMIN, user_id=admin.user_id)
    with pytest.raises(NotFoundError):
        container.user_service.delete_user(current_role=Role.ADMIN, user_id=9999)


def test_ensure_admin_is_idempotent(container, store):
    first = container.user_service.ensure_admin(email="root@uni.edu", password="rootpass", name="Root")
    second = container.user_service.ensure_admin(email="root@uni.edu", password="other-pass", name="Root 2")

    assert first.user_id == second.user_id
    assert [u.role for u in store.users.values()] == [Role.ADMIN]
