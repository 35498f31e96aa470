from __future__ import annotations

import pytest

from academy_app.models import AppState, Attendance, Course, Group, Session, Student
from academy_app.services import PaymentStatus, queries


def _student(student_id, *, group_id=None, course_id="c1", paid=(False, False, False), name=None, phone=None):
    certificate, first, second = paid
    return Student(
        id=student_id,
        full_name=name or f"Student {student_id}",
        phone_number=phone or f"010000000{student_id[-1]}",
        certificate_fee_paid=certificate,
        first_installment_paid=first,
        second_installment_paid=second,
        course_id=course_id,
        group_id=group_id,
    )


def _session(session_id, group_id, date, created_at=""):
    return Session(
        id=session_id,
        group_id=group_id,
        title=f"Session {session_id}",
        date=date,
        qr_token=f"token-{session_id}",
        created_at=created_at,
    )


@pytest.fixture
def state() -> AppState:
    return AppState(
        courses=(
            Course(id="c1", name="English"),
            Course(id="c2", name="German"),
        ),
        groups=(
            Group(id="g1", course_id="c1", name="Morning", max_capacity=3),
            Group(id="g2", course_id="c1", name="Evening", max_capacity=2),
            Group(id="g3", course_id="c2", name="German A"),
        ),
        students=(
            _student("s1", group_id="g1", paid=(True, True, True), name="Sara Ali"),
            _student("s2", group_id="g1", paid=(True, False, False)),
            _student("s3", group_id="g2"),
            _student("s4", group_id="g2"),
            _student("s5"),
            _student("s6", course_id="c2", group_id="g3"),
        ),
        sessions=(
            _session("x3", "g1", "2026-10-12", created_at="2026-10-01T10:00:00.000Z"),
            _session("x1", "g1", "2026-10-05", created_at="2026-10-03T10:00:00.000Z"),
            _session("x2", "g2", "2026-10-06", created_at="2026-10-02T10:00:00.000Z"),
            _session("x4", "g2", "2026-10-13", created_at="2026-10-04T10:00:00.000Z"),
        ),
        attendance=(
            Attendance(id="a1", student_id="s1", session_id="x1"),
            Attendance(id="a2", student_id="s1", session_id="x3"),
            Attendance(id="a3", student_id="s3", session_id="x2"),
        ),
    )


def test_lookups(state):
    assert queries.get_course(state, "c2").name == "German"
    assert queries.get_group(state, "missing") is None
    assert queries.get_student_by_phone(state, " 0100000001 ").id == "s1"
    assert queries.get_session_by_token(state, "token-x2").id == "x2"
    assert queries.get_session_by_token(state, "") is None


def test_course_stats(state):
    stats = queries.get_course_stats(state, "c1")

    assert stats == queries.CourseStats(group_count=2, student_count=5, session_count=4)
    assert queries.get_course_stats(state, "missing") == queries.CourseStats(0, 0, 0)


def test_sessions_by_group_are_sorted_by_date(state):
    assert [session.id for session in queries.get_sessions_by_group(state, "g1")] == ["x1", "x3"]


def test_unassigned_students(state):
    assert [student.id for student in queries.get_unassigned_students(state)] == ["s5"]
    assert queries.get_unassigned_students(state, "c2") == []


def test_attendance_rate(state):
    assert queries.get_attendance_rate(state, "s1") == 100
    assert queries.get_attendance_rate(state, "s3") == 50
    assert queries.get_attendance_rate(state, "s2") == 0
    # No group, and a group without sessions.
    assert queries.get_attendance_rate(state, "s5") == 0
    assert queries.get_attendance_rate(state, "s6") == 0


def test_attendance_rate_rounds_half_up():
    state = AppState(
        groups=(Group(id="g1", course_id="c1", name="Morning"),),
        students=(_student("s1", group_id="g1"),),
        sessions=tuple(_session(f"x{index}", "g1", "2026-10-01") for index in range(8)),
        attendance=tuple(Attendance(id=f"a{index}", student_id="s1", session_id=f"x{index}") for index in range(5)),
    )

    # 5 / 8 = 62.5%
    assert queries.get_attendance_rate(state, "s1") == 63


def test_group_capacity(state):
    assert queries.get_group_student_count(state, "g2") == 2
    assert queries.is_group_full(state, "g2") is True
    assert queries.is_group_full(state, "g1") is False
    assert queries.is_group_full(state, "g3") is False

    overview = queries.get_group_capacity_overview(state)
    assert [item.group.id for item in overview] == ["g2", "g1"]
    assert overview[0].is_full and overview[0].percentage == 100


def test_filter_students_by_payment(state):
    def ids(**kwargs):
        return [student.id for student in queries.filter_students(state, **kwargs)]

    assert ids(payment=PaymentStatus.PAID) == ["s1"]
    assert ids(payment="partial") == ["s2"]
    assert ids(payment=PaymentStatus.UNPAID, course_id="c1") == ["s3", "s4", "s5"]


def test_filter_students_by_search_and_group(state):
    assert [student.id for student in queries.filter_students(state, search="sara")] == ["s1"]
    assert [student.id for student in queries.filter_students(state, search="0100000006")] == ["s6"]
    assert [student.id for student in queries.filter_students(state, group_id="g2")] == ["s3", "s4"]


def test_dashboard_summary(state):
    summary = queries.get_dashboard_summary(state)

    assert summary.total_students == 6
    assert summary.total_groups == 3
    assert summary.unassigned_students == 1
    assert [item.session.id for item in summary.recent_sessions] == ["x4", "x1", "x2", "x3"]
    assert summary.recent_sessions[1].attendance_count == 1
    assert summary.recent_sessions[1].course.id == "c1"
    assert summary.courses[0][0].id == "c1"
