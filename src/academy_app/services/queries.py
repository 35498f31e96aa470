"""Read-only lookups and statistics over an :class:`AppState`.

Everything here is a plain linear scan; the collections hold tens to
hundreds of records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from academy_app.models import AppState, Attendance, Course, Group, Session, Student
from academy_app.utils import sort_key

RECENT_SESSIONS_LIMIT = 5
CAPACITY_OVERVIEW_LIMIT = 5


class PaymentStatus(str, Enum):
    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


@dataclass(frozen=True)
class CourseStats:
    group_count: int
    student_count: int
    session_count: int


@dataclass(frozen=True)
class GroupCapacity:
    group: Group
    course: Optional[Course]
    count: int
    is_full: bool
    percentage: float


@dataclass(frozen=True)
class SessionSummary:
    session: Session
    group: Optional[Group]
    course: Optional[Course]
    attendance_count: int


@dataclass(frozen=True)
class DashboardSummary:
    total_students: int
    total_courses: int
    total_groups: int
    total_sessions: int
    unassigned_students: int
    recent_sessions: tuple[SessionSummary, ...]
    courses: tuple[tuple[Course, CourseStats], ...]
    capacity: tuple[GroupCapacity, ...]


# ----------------------------------------------------------------------
# Lookups by id / key
# ----------------------------------------------------------------------
def get_course(state: AppState, course_id: Optional[str]) -> Optional[Course]:
    return next((course for course in state.courses if course.id == course_id), None)


def get_group(state: AppState, group_id: Optional[str]) -> Optional[Group]:
    return next((group for group in state.groups if group.id == group_id), None)


def get_student(state: AppState, student_id: Optional[str]) -> Optional[Student]:
    return next((student for student in state.students if student.id == student_id), None)


def get_session(state: AppState, session_id: Optional[str]) -> Optional[Session]:
    return next((session for session in state.sessions if session.id == session_id), None)


def get_student_by_phone(state: AppState, phone: str) -> Optional[Student]:
    phone = (phone or "").strip()
    return next((student for student in state.students if student.phone_number == phone), None)


def get_session_by_token(state: AppState, token: str) -> Optional[Session]:
    if not token:
        return None
    return next((session for session in state.sessions if session.qr_token == token), None)


# ----------------------------------------------------------------------
# Foreign-key filters
# ----------------------------------------------------------------------
def get_groups_by_course(state: AppState, course_id: str) -> list[Group]:
    return [group for group in state.groups if group.course_id == course_id]


def get_students_by_course(state: AppState, course_id: str) -> list[Student]:
    return [student for student in state.students if student.course_id == course_id]


def get_students_by_group(state: AppState, group_id: str) -> list[Student]:
    return [student for student in state.students if student.group_id == group_id]


def get_sessions_by_group(state: AppState, group_id: str) -> list[Session]:
    sessions = [session for session in state.sessions if session.group_id == group_id]
    return sorted(sessions, key=lambda session: sort_key(session.date))


def get_unassigned_students(state: AppState, course_id: Optional[str] = None) -> list[Student]:
    return [
        student
        for student in state.students
        if not student.group_id and (course_id is None or student.course_id == course_id)
    ]


def get_attendance_by_session(state: AppState, session_id: str) -> list[Attendance]:
    return [record for record in state.attendance if record.session_id == session_id]


def has_attended(state: AppState, student_id: str, session_id: str) -> bool:
    return any(
        record.student_id == student_id and record.session_id == session_id for record in state.attendance
    )


# ----------------------------------------------------------------------
# Capacity & statistics
# ----------------------------------------------------------------------
def get_group_student_count(state: AppState, group_id: str) -> int:
    return sum(1 for student in state.students if student.group_id == group_id)


def is_group_full(state: AppState, group_id: str) -> bool:
    group = get_group(state, group_id)
    if group is None or not group.max_capacity:
        return False
    return get_group_student_count(state, group_id) >= group.max_capacity


def get_course_stats(state: AppState, course_id: str) -> CourseStats:
    group_ids = {group.id for group in get_groups_by_course(state, course_id)}
    return CourseStats(
        group_count=len(group_ids),
        student_count=len(get_students_by_course(state, course_id)),
        session_count=sum(1 for session in state.sessions if session.group_id in group_ids),
    )


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def get_attendance_rate(state: AppState, student_id: str) -> int:
    """Percentage of the student's group sessions the student attended.

    Returns 0 for students without a group or whose group has no sessions.
    """

    student = get_student(state, student_id)
    if student is None or not student.group_id:
        return 0

    session_ids = {session.id for session in state.sessions if session.group_id == student.group_id}
    if not session_ids:
        return 0

    attended = {
        record.session_id
        for record in state.attendance
        if record.student_id == student_id and record.session_id in session_ids
    }
    return _round_half_up(len(attended) * 100 / len(session_ids))


def filter_students(
    state: AppState,
    *,
    search: str = "",
    course_id: Optional[str] = None,
    group_id: Optional[str] = None,
    payment: Optional[PaymentStatus | str] = None,
) -> list[Student]:
    needle = (search or "").strip().lower()
    payment_status = PaymentStatus(payment) if payment else None

    def matches(student: Student) -> bool:
        if needle and needle not in student.full_name.lower() and needle not in student.phone_number:
            return False
        if course_id and student.course_id != course_id:
            return False
        if group_id and student.group_id != group_id:
            return False

        paid = student.fees_paid
        if payment_status is PaymentStatus.PAID:
            return all(paid)
        if payment_status is PaymentStatus.PARTIAL:
            return any(paid) and not all(paid)
        if payment_status is PaymentStatus.UNPAID:
            return not any(paid)
        return True

    return [student for student in state.students if matches(student)]


def get_group_capacity_overview(state: AppState, limit: int = CAPACITY_OVERVIEW_LIMIT) -> list[GroupCapacity]:
    overview = []
    for group in state.groups:
        if not group.max_capacity:
            continue
        count = get_group_student_count(state, group.id)
        overview.append(
            GroupCapacity(
                group=group,
                course=get_course(state, group.course_id),
                count=count,
                is_full=count >= group.max_capacity,
                percentage=count / group.max_capacity * 100,
            )
        )
    overview.sort(key=lambda item: item.percentage, reverse=True)
    return overview[:limit]


def summarize_sessions(state: AppState, sessions: Sequence[Session]) -> list[SessionSummary]:
    summaries = []
    for session in sessions:
        group = get_group(state, session.group_id)
        summaries.append(
            SessionSummary(
                session=session,
                group=group,
                course=get_course(state, group.course_id) if group else None,
                attendance_count=len(get_attendance_by_session(state, session.id)),
            )
        )
    return summaries


def get_dashboard_summary(state: AppState) -> DashboardSummary:
    recent = sorted(state.sessions, key=lambda session: sort_key(session.created_at), reverse=True)
    courses = sorted(
        ((course, get_course_stats(state, course.id)) for course in state.courses),
        key=lambda item: item[1].student_count,
        reverse=True,
    )
    return DashboardSummary(
        total_students=len(state.students),
        total_courses=len(state.courses),
        total_groups=len(state.groups),
        total_sessions=len(state.sessions),
        unassigned_students=len(get_unassigned_students(state)),
        recent_sessions=tuple(summarize_sessions(state, recent[:RECENT_SESSIONS_LIMIT])),
        courses=tuple(courses),
        capacity=tuple(get_group_capacity_overview(state)),
    )
