from __future__ import annotations

import threading

import pytest

from course_attendance.core.enums import EnrollmentStatus, Role
from course_attendance.core.exceptions import (
    AlreadyEnrolledError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from course_attendance.enrollments.model import CourseSnapshot, StudentSnapshot


def test_enroll_copies_snapshots_from_user_and_course(container, course, make_student):
    student = make_student("Alice", intake="50", section="B")

    enrollment = container.enrollment_service.enroll(str(student.user_id), str(course.course_id))

    assert enrollment.status == EnrollmentStatus.ACTIVE
    assert enrollment.student_id == student.user_id
    assert enrollment.course_id == course.course_id
    assert enrollment.student_name == "Alice"
    assert enrollment.student_custom_id == student.student_code
    assert (enrollment.intake, enrollment.section) == ("50", "B")
    assert enrollment.course_code == course.course_code


def test_caller_supplied_snapshots_win(container, course, make_student):
    student = make_student()
    enrollment = container.enrollment_service.enroll(
        student.user_id,
        course.course_id,
        student=StudentSnapshot(name="Nick", email="nick@uni.edu", intake="51", section="C"),
        course=CourseSnapshot(course_code="X1", course_name="Renamed"),
    )

    assert enrollment.student_name == "Nick"
    assert enrollment.section == "C"
    assert enrollment.course_name == "Renamed"


def test_second_active_enrollment_is_rejected_across_id_forms(container, store, course, make_student):
    student = make_student()
    container.enrollment_service.enroll(student.user_id, course.course_id)

    with pytest.raises(AlreadyEnrolledError):
        container.enrollment_service.enroll(str(student.user_id), str(course.course_id))

    assert len(store.enrollments) == 1


def test_concurrent_enrollments_create_one_row(container, store, course, make_student):
    student = make_student()
    barrier = threading.Barrier(4)
    outcomes: list[str] = []

    def worker():
        barrier.wait()
        try:
            container.enrollment_service.enroll(student.user_id, course.course_id)
            outcomes.append("ok")
        except AlreadyEnrolledError:
            outcomes.append("dup")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["dup", "dup", "dup", "ok"]
    assert len(store.enrollments) == 1


def test_drop_is_soft_and_allows_reenrollment(container, store, course, make_student):
    student = make_student()
    first = container.enrollment_service.enroll(student.user_id, course.course_id)

    container.enrollment_service.drop(str(first.enrollment_id))

    assert container.enrollment_service.get(first.enrollment_id).status == EnrollmentStatus.DROPPED
    assert container.enrollment_service.list_by_student(student.user_id) == []

    again = container.enrollment_service.enroll(student.user_id, course.course_id)
    assert again.enrollment_id != first.enrollment_id
    assert len(store.enrollments) == 2


def test_drop_unknown_enrollment(container):
    with pytest.raises(NotFoundError):
        container.enrollment_service.drop(12345)


def test_enroll_unknown_student_or_course(container, course, teacher):
    with pytest.raises(NotFoundError):
        container.enrollment_service.enroll(9999, course.course_id)
    # A teacher account is not a student.
    with pytest.raises(NotFoundError):
        container.enrollment_service.enroll(teacher.user_id, course.course_id)


def test_invalid_ids_are_validation_errors(container):
    with pytest.raises(ValidationError):
        container.enrollment_service.enroll("abc", 1)
    with pytest.raises(ValidationError):
        container.enrollment_service.list_by_course("-3")


def test_course_listing_hides_ghost_students_but_fast_path_keeps_them(container, store, course, make_student):
    kept, ghost = make_student(), make_student(section="B")
    container.enrollment_service.enroll(kept.user_id, course.course_id)
    container.enrollment_service.enroll(ghost.user_id, course.course_id)
    del store.users[ghost.user_id]

    listed = container.enrollment_service.list_by_course(course.course_id)
    fast = container.enrollment_service.list_by_course_fast(course.course_id)
    fast_b = container.enrollment_service.list_by_course_fast(course.course_id, section="B")

    assert [e.student_id for e in listed] == [kept.user_id]
    assert {e.student_id for e in fast} == {kept.user_id, ghost.user_id}
    assert [e.student_id for e in fast_b] == [ghost.user_id]


def test_list_by_teacher_spans_all_courses(container, store, teacher, make_course, make_student):
    c1 = make_course(teacher, code="CSE101")
    c2 = make_course(teacher, code="CSE102")
    container.course_service.update_course(
        current_role=Role.TEACHER, current_user_id=teacher.user_id, course_id=c2.course_id, patch={"isActive": False}
    )
    s1, s2 = make_student(), make_student()
    container.enrollment_service.enroll(s1.user_id, c1.course_id)
    container.enrollment_service.enroll(s2.user_id, c2.course_id)

    listed = container.enrollment_service.list_by_teacher(teacher.user_id)

    assert {e.course_id for e in listed} == {c1.course_id, c2.course_id}


def test_list_by_student_adds_live_course_details(container, store, course, make_student):
    student = make_student()
    container.enrollment_service.enroll(student.user_id, course.course_id)

    [row] = container.enrollment_service.list_by_student(student.user_id)
    payload = row.to_dict()
    assert payload["credits"] == 3
    assert payload["teacherName"] == course.teacher_name
    assert payload["semester"] == "Fall 2024"


def test_list_by_student_falls_back_to_defaults(container, store, course, make_student, monkeypatch):
    student = make_student()
    container.enrollment_service.enroll(student.user_id, course.course_id)

    def broken(_course_id):
        raise StorageError("connection lost")

    monkeypatch.setattr(container.courses_repo, "get_by_id", broken)

    [row] = container.enrollment_service.list_by_student(student.user_id)
    assert (row.credits, row.semester, row.teacher_name, row.description) == (3, "Fall 2024", "N/A", "")


def test_available_courses_excludes_active_enrollments(container, teacher, make_course, make_student):
    taken = make_course(teacher, code="CSE101")
    open_course = make_course(teacher, code="CSE102")
    make_course(teacher, code="EEE101", department="EEE")
    student = make_student()
    container.enrollment_service.enroll(student.user_id, taken.course_id)

    available = container.enrollment_service.available_courses_for_student(student.user_id, "CSE", "50")

    assert [c.course_id for c in available] == [open_course.course_id]


def test_storage_failures_are_prefixed(container, monkeypatch):
    def broken(**_kwargs):
        raise StorageError("timeout")

    monkeypatch.setattr(container.enrollments_repo, "list_active", broken)

    with pytest.raises(StorageError, match="^Failed to get course enrollments: timeout$"):
        container.enrollment_service.list_by_course(1)
