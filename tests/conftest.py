from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from course_attendance.attendance.model import AttendanceEntry, AttendanceRecord, SessionKey
from course_attendance.container import Container, wire_container
from course_attendance.core.enums import EnrollmentStatus, Role
from course_attendance.courses.model import Course
from course_attendance.enrollments.model import Enrollment, NewEnrollment
from course_attendance.users.model import User


class InMemoryStore:
    """Tables of the record store, shared by the fake repositories."""

    def __init__(self):
        self.lock = threading.Lock()
        self._next_id = 1
        self.users: dict[int, User] = {}
        self.courses: dict[int, Course] = {}
        self.enrollments: dict[int, Enrollment] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self.sessions: set[SessionKey] = set()

    def next_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid


class FakeUsersRepo:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._s.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._s.users.values() if u.email == email), None)

    def get_by_student_code(self, student_code: str) -> Optional[User]:
        return next(
            (u for u in self._s.users.values() if u.role == Role.STUDENT and u.student_code == student_code),
            None,
        )

    def create_user(self, *, email, password_hash, name, role, student_code=None, intake=None, section=None,
                    department=None, created_by=None) -> int:
        uid = self._s.next_id()
        self._s.users[uid] = User(
            user_id=uid,
            email=email,
            password_hash=password_hash,
            name=name,
            role=role,
            student_code=student_code,
            intake=intake,
            section=section,
            department=department,
            created_by=created_by,
            created_at=datetime(2024, 9, 1, 8, 0, 0),
        )
        return uid

    def delete_by_id(self, user_id: int) -> bool:
        return self._s.users.pop(int(user_id), None) is not None

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        return [u for _, u in sorted(self._s.users.items()) if role is None or u.role == role]

    def existing_ids(self, user_ids: Iterable[int]) -> set[int]:
        return {int(u) for u in user_ids if int(u) in self._s.users}


class FakeCoursesRepo:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, course_id: int) -> Optional[Course]:
        return self._s.courses.get(int(course_id))

    def create_course(self, *, course_code, course_name, department, credits, description, teacher_id,
                      teacher_name, semester) -> int:
        cid = self._s.next_id()
        self._s.courses[cid] = Course(
            course_id=cid,
            course_code=course_code,
            course_name=course_name,
            department=department,
            credits=credits,
            description=description,
            teacher_id=teacher_id,
            teacher_name=teacher_name,
            semester=semester,
            created_at=datetime(2024, 9, 1, 8, 0, 0),
        )
        return cid

    def update_course(self, course_id: int, fields: dict[str, Any]) -> bool:
        course = self._s.courses.get(int(course_id))
        if not course:
            return False
        self._s.courses[int(course_id)] = replace(course, **fields)
        return True

    def delete_by_id(self, course_id: int) -> bool:
        return self._s.courses.pop(int(course_id), None) is not None

    def list_courses(self, *, teacher_id=None, department=None, active_only=True) -> Sequence[Course]:
        out = []
        for _, c in sorted(self._s.courses.items()):
            if teacher_id is not None and c.teacher_id != int(teacher_id):
                continue
            if department is not None and c.department != department:
                continue
            if active_only and not c.is_active:
                continue
            out.append(c)
        return out


class FakeEnrollmentsRepo:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        return self._s.enrollments.get(int(enrollment_id))

    def get_active(self, student_id: int, course_id: int) -> Optional[Enrollment]:
        return next(
            (
                e
                for e in self._s.enrollments.values()
                if e.student_id == student_id and e.course_id == course_id and e.is_active
            ),
            None,
        )

    def create(self, new: NewEnrollment) -> Optional[int]:
        with self._s.lock:
            if self.get_active(new.student_id, new.course_id):
                return None
            eid = self._s.next_id()
            self._s.enrollments[eid] = Enrollment(
                enrollment_id=eid,
                student_id=new.student_id,
                course_id=new.course_id,
                student_name=new.student.name,
                student_email=new.student.email,
                student_custom_id=new.student.custom_id,
                course_code=new.course.course_code,
                course_name=new.course.course_name,
                department=new.course.department,
                intake=new.student.intake,
                section=new.student.section,
                status=EnrollmentStatus.ACTIVE,
                enrolled_at=new.enrolled_at,
            )
            return eid

    def set_status(self, enrollment_id: int, status: EnrollmentStatus) -> bool:
        e = self._s.enrollments.get(int(enrollment_id))
        if not e:
            return False
        self._s.enrollments[int(enrollment_id)] = replace(e, status=status)
        return True

    def list_active(self, *, student_id=None, course_ids=None, intake=None, section=None) -> Sequence[Enrollment]:
        wanted = None if course_ids is None else {int(c) for c in course_ids}
        out = []
        for _, e in sorted(self._s.enrollments.items()):
            if not e.is_active:
                continue
            if student_id is not None and e.student_id != int(student_id):
                continue
            if wanted is not None and e.course_id not in wanted:
                continue
            if intake is not None and e.intake != intake:
                continue
            if section is not None and e.section != section:
                continue
            out.append(e)
        return out

    def _delete_where(self, pred) -> int:
        doomed = [eid for eid, e in self._s.enrollments.items() if pred(e)]
        for eid in doomed:
            del self._s.enrollments[eid]
        return len(doomed)

    def delete_by_course(self, course_id: int) -> int:
        return self._delete_where(lambda e: e.course_id == int(course_id))

    def delete_by_student(self, student_id: int) -> int:
        return self._delete_where(lambda e: e.student_id == int(student_id))


def _session_of(r: AttendanceRecord) -> SessionKey:
    return SessionKey(r.course_id, r.attendance_date, r.intake, r.section)


class FakeAttendanceRepo:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._s.attendance.get(int(attendance_id))

    def _upsert(self, entry: AttendanceEntry) -> int:
        for aid, r in self._s.attendance.items():
            if r.student_id == entry.student_id and _session_of(r) == entry.session_key:
                self._s.attendance[aid] = replace(
                    r,
                    status=entry.status,
                    notes=entry.notes,
                    student_name=entry.student_name or r.student_name,
                    student_email=entry.student_email or r.student_email,
                    taken_by=entry.taken_by,
                    taken_at=entry.taken_at,
                )
                return aid
        aid = self._s.next_id()
        self._s.attendance[aid] = AttendanceRecord(
            attendance_id=aid,
            course_id=entry.course_id,
            student_id=entry.student_id,
            attendance_date=entry.attendance_date,
            intake=entry.intake,
            section=entry.section,
            status=entry.status,
            notes=entry.notes,
            student_name=entry.student_name,
            student_email=entry.student_email,
            taken_by=entry.taken_by,
            taken_at=entry.taken_at,
        )
        return aid

    def upsert(self, entry: AttendanceEntry) -> int:
        with self._s.lock:
            return self._upsert(entry)

    def _has_rows(self, key: SessionKey) -> bool:
        return any(_session_of(r) == key for r in self._s.attendance.values())

    def session_taken(self, key: SessionKey) -> bool:
        return key in self._s.sessions or self._has_rows(key)

    def record_session(self, key: SessionKey, entries: Sequence[AttendanceEntry]) -> Optional[int]:
        with self._s.lock:
            if key in self._s.sessions or self._has_rows(key):
                return None
            self._s.sessions.add(key)
            for entry in entries:
                self._upsert(entry)
            return len(entries)

    def update_fields(self, attendance_id: int, fields: dict[str, Any]) -> bool:
        r = self._s.attendance.get(int(attendance_id))
        if not r:
            return False
        self._s.attendance[int(attendance_id)] = replace(r, **fields)
        return True

    def delete_by_id(self, attendance_id: int) -> bool:
        with self._s.lock:
            r = self._s.attendance.pop(int(attendance_id), None)
            if r is None:
                return False
            key = _session_of(r)
            if not self._has_rows(key):
                self._s.sessions.discard(key)
            return True

    def find(self, *, course_id=None, student_id=None, student_ids=None, attendance_date=None, start_date=None,
             end_date=None, newest_first=False) -> Sequence[AttendanceRecord]:
        ids = None if student_ids is None else {int(s) for s in student_ids}
        out = []
        for r in self._s.attendance.values():
            if course_id is not None and r.course_id != int(course_id):
                continue
            if student_id is not None and r.student_id != int(student_id):
                continue
            if ids is not None and r.student_id not in ids:
                continue
            if attendance_date is not None and r.attendance_date != attendance_date:
                continue
            if start_date is not None and r.attendance_date < start_date:
                continue
            if end_date is not None and r.attendance_date > end_date:
                continue
            out.append(r)
        return sorted(out, key=lambda r: (r.attendance_date, r.attendance_id), reverse=newest_first)


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def container(store: InMemoryStore) -> Container:
    return wire_container(
        users_repo=FakeUsersRepo(store),
        courses_repo=FakeCoursesRepo(store),
        enrollments_repo=FakeEnrollmentsRepo(store),
        attendance_repo=FakeAttendanceRepo(store),
    )


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2024, 10, 7, 9, 30, 0)


@pytest.fixture()
def day() -> date:
    return date(2024, 10, 7)


def add_user(store: InMemoryStore, *, role: Role, name: str, email: str, password: str = "secret123",
             student_code: Optional[str] = None, intake: Optional[str] = None,
             section: Optional[str] = None, department: str = "CSE") -> User:
    uid = FakeUsersRepo(store).create_user(
        email=email,
        password_hash=generate_password_hash(password),
        name=name,
        role=role,
        student_code=student_code,
        intake=intake,
        section=section,
        department=department,
    )
    return store.users[uid]


def add_course(store: InMemoryStore, *, teacher: User, code: str = "CSE101", name: str = "Intro to CS",
               department: str = "CSE") -> Course:
    cid = FakeCoursesRepo(store).create_course(
        course_code=code,
        course_name=name,
        department=department,
        credits=3,
        description="",
        teacher_id=teacher.user_id,
        teacher_name=teacher.name,
        semester="Fall 2024",
    )
    return store.courses[cid]


@pytest.fixture()
def teacher(store: InMemoryStore) -> User:
    return add_user(store, role=Role.TEACHER, name="Teacher T", email="teacher@uni.edu")


@pytest.fixture()
def admin(store: InMemoryStore) -> User:
    return add_user(store, role=Role.ADMIN, name="Admin", email="admin@uni.edu")


@pytest.fixture()
def course(store: InMemoryStore, teacher: User) -> Course:
    return add_course(store, teacher=teacher)


@pytest.fixture()
def make_student(store: InMemoryStore):
    counter = {"n": 0}

    def _make(name: Optional[str] = None, *, intake: str = "50", section: str = "A") -> User:
        counter["n"] += 1
        n = counter["n"]
        return add_user(
            store,
            role=Role.STUDENT,
            name=name or f"Student {n}",
            email=f"student{n}@uni.edu",
            student_code=f"S{n:03d}",
            intake=intake,
            section=section,
        )

    return _make


@pytest.fixture()
def app(monkeypatch, container: Container):
    monkeypatch.setenv("APP_ENV", "testing")
    from course_attendance.main import create_app

    return create_app(container)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def login_as(client):
    def _login(user: User) -> None:
        with client.session_transaction() as sess:
            sess["user_id"] = user.user_id
            sess["role"] = user.role.value
            sess["name"] = user.name

    return _login


@pytest.fixture()
def make_user(store: InMemoryStore):
    def _make(**kwargs) -> User:
        return add_user(store, **kwargs)

    return _make


@pytest.fixture()
def make_course(store: InMemoryStore):
    def _make(teacher: User, **kwargs) -> Course:
        return add_course(store, teacher=teacher, **kwargs)

    return _make
