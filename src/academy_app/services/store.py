from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, TypeVar

from academy_app.models import AppState, Attendance, Course, Group, Session, Student
from academy_app.services import queries
from academy_app.services.errors import DuplicatePhoneError, ValidationError
from academy_app.utils import now_iso

if TYPE_CHECKING:
    from academy_app.data.repository import StateRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 12
MAX_TOKEN_ATTEMPTS = 5

# Attributes callers may never overwrite through ``update_*``.
_PROTECTED_FIELDS = frozenset({"id", "created_at", "qr_token"})

RecordT = TypeVar("RecordT", Course, Group, Student, Session)


def _new_id() -> str:
    return str(uuid.uuid4())


def _new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def _required(value: Optional[str], message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(message)
    return cleaned


def _check_changes(record_type: type, changes: dict[str, Any]) -> None:
    allowed = {item.name for item in fields(record_type)} - _PROTECTED_FIELDS
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Cannot update {record_type.__name__} field(s): {', '.join(unknown)}")


def _validate_capacity(max_capacity: Optional[int]) -> Optional[int]:
    if max_capacity is None:
        return None
    if isinstance(max_capacity, bool) or not isinstance(max_capacity, int) or max_capacity <= 0:
        raise ValidationError("Maximum capacity must be a positive whole number.")
    return max_capacity


def _replace_by_id(records: Iterable[RecordT], record_id: str, updater: Callable[[RecordT], RecordT]) -> tuple[RecordT, ...]:
    return tuple(updater(record) if record.id == record_id else record for record in records)


class AcademyStore:
    """Create, update and delete academy records.

    Every mutating method takes the current :class:`AppState`, returns the
    next one and saves it through the repository before returning. Updating
    or deleting an id that does not exist returns the given state untouched.
    """

    def __init__(
        self,
        repository: "StateRepository",
        *,
        token_factory: Callable[[], str] = _new_token,
    ) -> None:
        self._repository = repository
        self._token_factory = token_factory

    def load(self) -> AppState:
        return self._repository.load()

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------
    def add_course(
        self,
        state: AppState,
        *,
        name: str,
        name_en: str = "",
        description: str = "",
        icon: str = "",
    ) -> AppState:
        course = Course(
            id=_new_id(),
            name=_required(name, "Course name is required."),
            name_en=(name_en or "").strip(),
            description=(description or "").strip(),
            icon=icon or "",
            created_at=now_iso(),
        )
        logger.info("Adding course %s (%s)", course.id, course.name)
        return self._commit(state, courses=(*state.courses, course))

    def update_course(self, state: AppState, course_id: str, **changes: Any) -> AppState:
        _check_changes(Course, changes)
        if queries.get_course(state, course_id) is None:
            logger.debug("update_course: no course %s", course_id)
            return state
        if "name" in changes:
            changes["name"] = _required(changes["name"], "Course name is required.")

        courses = _replace_by_id(state.courses, course_id, lambda course: replace(course, **changes))
        return self._commit(state, courses=courses)

    def delete_course(self, state: AppState, course_id: str) -> AppState:
        if queries.get_course(state, course_id) is None:
            logger.debug("delete_course: no course %s", course_id)
            return state

        group_ids = {group.id for group in state.groups if group.course_id == course_id}
        removed_sessions = {session.id for session in state.sessions if session.group_id in group_ids}
        logger.info(
            "Deleting course %s with %d group(s) and %d session(s)",
            course_id,
            len(group_ids),
            len(removed_sessions),
        )

        return self._commit(
            state,
            courses=tuple(course for course in state.courses if course.id != course_id),
            groups=tuple(group for group in state.groups if group.course_id != course_id),
            sessions=tuple(session for session in state.sessions if session.id not in removed_sessions),
            students=tuple(
                replace(student, course_id=None, group_id=None) if student.course_id == course_id else student
                for student in state.students
            ),
            attendance=tuple(record for record in state.attendance if record.session_id not in removed_sessions),
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    def add_group(
        self,
        state: AppState,
        *,
        course_id: str,
        name: str,
        instructor_name: str = "",
        max_capacity: Optional[int] = None,
    ) -> AppState:
        if queries.get_course(state, course_id) is None:
            raise ValidationError("Select an existing course for the group.")

        group = Group(
            id=_new_id(),
            course_id=course_id,
            name=_required(name, "Group name is required."),
            instructor_name=(instructor_name or "").strip(),
            max_capacity=_validate_capacity(max_capacity),
            created_at=now_iso(),
        )
        logger.info("Adding group %s (%s) to course %s", group.id, group.name, course_id)
        return self._commit(state, groups=(*state.groups, group))

    def update_group(self, state: AppState, group_id: str, **changes: Any) -> AppState:
        _check_changes(Group, changes)
        group = queries.get_group(state, group_id)
        if group is None:
            logger.debug("update_group: no group %s", group_id)
            return state

        if "name" in changes:
            changes["name"] = _required(changes["name"], "Group name is required.")
        if "max_capacity" in changes:
            changes["max_capacity"] = _validate_capacity(changes["max_capacity"])

        students = state.students
        new_course_id = changes.get("course_id", group.course_id)
        if new_course_id != group.course_id:
            if queries.get_course(state, new_course_id) is None:
                raise ValidationError("Select an existing course for the group.")
            # Members follow their group into the new course.
            students = tuple(
                replace(student, course_id=new_course_id) if student.group_id == group_id else student
                for student in state.students
            )

        groups = _replace_by_id(state.groups, group_id, lambda record: replace(record, **changes))
        return self._commit(state, groups=groups, students=students)

    def delete_group(self, state: AppState, group_id: str) -> AppState:
        if queries.get_group(state, group_id) is None:
            logger.debug("delete_group: no group %s", group_id)
            return state

        removed_sessions = {session.id for session in state.sessions if session.group_id == group_id}
        logger.info("Deleting group %s with %d session(s)", group_id, len(removed_sessions))

        return self._commit(
            state,
            groups=tuple(group for group in state.groups if group.id != group_id),
            sessions=tuple(session for session in state.sessions if session.group_id != group_id),
            students=tuple(
                replace(student, group_id=None) if student.group_id == group_id else student
                for student in state.students
            ),
            attendance=tuple(record for record in state.attendance if record.session_id not in removed_sessions),
        )

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------
    def add_student(
        self,
        state: AppState,
        *,
        full_name: str,
        phone_number: str,
        is_new: bool = True,
        certificate_fee_paid: bool = False,
        first_installment_paid: bool = False,
        second_installment_paid: bool = False,
        course_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> AppState:
        phone = _required(phone_number, "Phone number is required.")
        self._ensure_phone_available(state, phone)
        course_id, group_id = self._resolve_placement(state, course_id or None, group_id or None)

        student = Student(
            id=_new_id(),
            full_name=_required(full_name, "Student name is required."),
            phone_number=phone,
            is_new=bool(is_new),
            certificate_fee_paid=bool(certificate_fee_paid),
            first_installment_paid=bool(first_installment_paid),
            second_installment_paid=bool(second_installment_paid),
            course_id=course_id,
            group_id=group_id,
            created_at=now_iso(),
        )
        if group_id:
            self._warn_if_full(state, group_id)

        logger.info("Adding student %s to group %s", student.id, group_id or "-")
        return self._commit(state, students=(*state.students, student))

    def update_student(self, state: AppState, student_id: str, **changes: Any) -> AppState:
        _check_changes(Student, changes)
        student = queries.get_student(state, student_id)
        if student is None:
            logger.debug("update_student: no student %s", student_id)
            return state

        if "full_name" in changes:
            changes["full_name"] = _required(changes["full_name"], "Student name is required.")
        if "phone_number" in changes:
            changes["phone_number"] = _required(changes["phone_number"], "Phone number is required.")
            self._ensure_phone_available(state, changes["phone_number"], exclude_id=student_id)

        if "course_id" in changes or "group_id" in changes:
            course_id = changes.get("course_id", student.course_id) or None
            group_id = changes.get("group_id", student.group_id) or None
            if "group_id" not in changes and group_id:
                group = queries.get_group(state, group_id)
                if group is not None and group.course_id != course_id:
                    # Changing course drops the old course's group.
                    group_id = None
            changes["course_id"], changes["group_id"] = self._resolve_placement(state, course_id, group_id)
            if changes["group_id"] and changes["group_id"] != student.group_id:
                self._warn_if_full(state, changes["group_id"])

        students = _replace_by_id(state.students, student_id, lambda record: replace(record, **changes))
        return self._commit(state, students=students)

    def delete_student(self, state: AppState, student_id: str) -> AppState:
        if queries.get_student(state, student_id) is None:
            logger.debug("delete_student: no student %s", student_id)
            return state

        logger.info("Deleting student %s", student_id)
        return self._commit(
            state,
            students=tuple(student for student in state.students if student.id != student_id),
            attendance=tuple(record for record in state.attendance if record.student_id != student_id),
        )

    def move_student_to_group(self, state: AppState, student_id: str, group_id: str) -> AppState:
        group = queries.get_group(state, group_id)
        student = queries.get_student(state, student_id)
        if group is None or student is None:
            logger.debug("move_student_to_group: unknown student %s or group %s", student_id, group_id)
            return state

        if student.group_id != group_id:
            self._warn_if_full(state, group_id)
        logger.info("Moving student %s to group %s", student_id, group_id)
        students = _replace_by_id(
            state.students,
            student_id,
            lambda record: replace(record, group_id=group.id, course_id=group.course_id),
        )
        return self._commit(state, students=students)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def add_session(self, state: AppState, *, group_id: str, title: str, date: str) -> AppState:
        if queries.get_group(state, group_id) is None:
            raise ValidationError("Select an existing group for the session.")

        session = Session(
            id=_new_id(),
            group_id=group_id,
            title=_required(title, "Session title is required."),
            date=_required(date, "Session date is required."),
            qr_token=self._mint_token(state),
            created_at=now_iso(),
        )
        logger.info("Adding session %s (%s) for group %s", session.id, session.title, group_id)
        return self._commit(state, sessions=(*state.sessions, session))

    def update_session(self, state: AppState, session_id: str, **changes: Any) -> AppState:
        _check_changes(Session, changes)
        if queries.get_session(state, session_id) is None:
            logger.debug("update_session: no session %s", session_id)
            return state

        if "title" in changes:
            changes["title"] = _required(changes["title"], "Session title is required.")
        if "date" in changes:
            changes["date"] = _required(changes["date"], "Session date is required.")
        if "group_id" in changes and queries.get_group(state, changes["group_id"]) is None:
            raise ValidationError("Select an existing group for the session.")

        sessions = _replace_by_id(state.sessions, session_id, lambda record: replace(record, **changes))
        return self._commit(state, sessions=sessions)

    def delete_session(self, state: AppState, session_id: str) -> AppState:
        if queries.get_session(state, session_id) is None:
            logger.debug("delete_session: no session %s", session_id)
            return state

        logger.info("Deleting session %s", session_id)
        return self._commit(
            state,
            sessions=tuple(session for session in state.sessions if session.id != session_id),
            attendance=tuple(record for record in state.attendance if record.session_id != session_id),
        )

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------
    def mark_attendance(self, state: AppState, student_id: str, session_id: str) -> AppState:
        if queries.has_attended(state, student_id, session_id):
            return state
        if queries.get_student(state, student_id) is None or queries.get_session(state, session_id) is None:
            raise ValidationError("Attendance needs an existing student and session.")

        record = Attendance(
            id=_new_id(),
            student_id=student_id,
            session_id=session_id,
            attended_at=now_iso(),
        )
        logger.info("Recording attendance of student %s at session %s", student_id, session_id)
        return self._commit(state, attendance=(*state.attendance, record))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _commit(self, state: AppState, **changes: Any) -> AppState:
        new_state = replace(state, **changes)
        self._repository.save(new_state)
        return new_state

    def _mint_token(self, state: AppState) -> str:
        existing = {session.qr_token for session in state.sessions}
        for _ in range(MAX_TOKEN_ATTEMPTS):
            token = self._token_factory()
            if token and token not in existing:
                return token
            logger.warning("Discarding colliding check-in token")
        raise RuntimeError("Could not generate a unique check-in token.")

    @staticmethod
    def _ensure_phone_available(state: AppState, phone: str, *, exclude_id: Optional[str] = None) -> None:
        existing = queries.get_student_by_phone(state, phone)
        if existing is not None and existing.id != exclude_id:
            raise DuplicatePhoneError("This phone number is already registered to another student.")

    @staticmethod
    def _resolve_placement(
        state: AppState,
        course_id: Optional[str],
        group_id: Optional[str],
    ) -> tuple[Optional[str], Optional[str]]:
        """Return the (course_id, group_id) pair to store, keeping them consistent."""

        if group_id:
            group = queries.get_group(state, group_id)
            if group is None:
                raise ValidationError("Select an existing group.")
            if course_id and course_id != group.course_id:
                raise ValidationError("The selected group belongs to a different course.")
            return group.course_id, group.id

        if course_id and queries.get_course(state, course_id) is None:
            raise ValidationError("Select an existing course.")
        return course_id, None

    @staticmethod
    def _warn_if_full(state: AppState, group_id: str) -> None:
        group = queries.get_group(state, group_id)
        if group is None or not group.max_capacity:
            return
        count = queries.get_group_student_count(state, group_id)
        if count >= group.max_capacity:
            logger.warning(
                "Group %s is at capacity (%d/%d); adding another student anyway",
                group.name,
                count,
                group.max_capacity,
            )
