from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from academy_app.models import AppState, Group, Session, Student
from academy_app.services import queries
from academy_app.services.errors import InvalidTransitionError, ValidationError
from academy_app.services.store import AcademyStore

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10


class CheckInStep(str, Enum):
    PHONE = "phone"
    CONFIRM = "confirm"
    NEW_STUDENT_ASK = "new-student-ask"
    NEW_STUDENT_FORM = "new-student-form"
    SUCCESS = "success"
    ALREADY = "already"
    CONTACT_ADMIN = "contact-admin"
    ERROR = "error"


TERMINAL_STEPS = frozenset({CheckInStep.SUCCESS, CheckInStep.ALREADY, CheckInStep.CONTACT_ADMIN, CheckInStep.ERROR})


@dataclass(frozen=True)
class CheckInSessionView:
    """What a visitor holding the link is allowed to see about the session."""

    title: str
    date: str
    group_name: str
    course_name: str


class CheckInFlow:
    """Self-service check-in driven by a session's public token.

    The token is the only credential. It lets the holder record one
    attendance for that session and register a student in the session's
    group; the flow never hands out other records.
    """

    def __init__(self, store: AcademyStore, state: AppState, token: str) -> None:
        self._store = store
        self._state = state
        self._session: Optional[Session] = queries.get_session_by_token(state, token)
        self._group: Optional[Group] = queries.get_group(state, self._session.group_id) if self._session else None
        self._step = CheckInStep.PHONE
        self._phone = ""
        self._student: Optional[Student] = None
        self._is_editing_name = False

        if self._session is None or self._group is None:
            logger.info("Check-in opened with an unknown token")
            self._step = CheckInStep.ERROR

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------
    @property
    def step(self) -> CheckInStep:
        return self._step

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def phone(self) -> str:
        return self._phone

    @property
    def is_editing_name(self) -> bool:
        return self._is_editing_name

    @property
    def student_name(self) -> Optional[str]:
        return self._student.full_name if self._student else None

    @property
    def is_finished(self) -> bool:
        return self._step in TERMINAL_STEPS

    @property
    def session_view(self) -> Optional[CheckInSessionView]:
        if self._session is None or self._group is None:
            return None
        course = queries.get_course(self._state, self._group.course_id)
        return CheckInSessionView(
            title=self._session.title,
            date=self._session.date,
            group_name=self._group.name,
            course_name=course.name if course else "",
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def submit_phone(self, phone: str) -> CheckInStep:
        self._expect(CheckInStep.PHONE)
        phone = (phone or "").strip()
        if len(phone) < MIN_PHONE_LENGTH:
            raise ValidationError(f"Enter a phone number of at least {MIN_PHONE_LENGTH} digits.")

        self._refresh()
        self._phone = phone
        student = queries.get_student_by_phone(self._state, phone)
        self._student = student

        if student is None:
            self._step = CheckInStep.NEW_STUDENT_ASK
        elif queries.has_attended(self._state, student.id, self._session.id):
            self._step = CheckInStep.ALREADY
        else:
            self._step = CheckInStep.CONFIRM
        return self._step

    def deny_identity(self) -> None:
        """The visitor says the stored name is wrong; ask for a corrected one."""

        self._expect(CheckInStep.CONFIRM)
        self._is_editing_name = True

    def cancel_name_edit(self) -> None:
        """Leave name correction and go back to the plain confirmation."""

        self._expect(CheckInStep.CONFIRM)
        self._is_editing_name = False

    def confirm_identity(self, full_name: Optional[str] = None) -> CheckInStep:
        self._expect(CheckInStep.CONFIRM)
        self._refresh()
        student = queries.get_student(self._state, self._student.id)
        if student is None:
            logger.info("Student %s disappeared during check-in", self._student.id)
            self._student = None
            self._step = CheckInStep.CONTACT_ADMIN
            return self._step

        if self._is_editing_name:
            corrected = (full_name or "").strip()
            if not corrected:
                raise ValidationError("Enter your full name.")
            if corrected != student.full_name:
                self._state = self._store.update_student(self._state, student.id, full_name=corrected)

        self._state = self._store.mark_attendance(self._state, student.id, self._session.id)
        self._step = CheckInStep.SUCCESS
        return self._step

    def answer_is_new_student(self, is_new: bool) -> CheckInStep:
        self._expect(CheckInStep.NEW_STUDENT_ASK)
        self._step = CheckInStep.NEW_STUDENT_FORM if is_new else CheckInStep.CONTACT_ADMIN
        return self._step

    def submit_new_student(self, full_name: str) -> CheckInStep:
        self._expect(CheckInStep.NEW_STUDENT_FORM)
        self._refresh()
        state = self._store.add_student(
            self._state,
            full_name=full_name,
            phone_number=self._phone,
            is_new=True,
            certificate_fee_paid=False,
            first_installment_paid=False,
            second_installment_paid=False,
            course_id=self._group.course_id,
            group_id=self._group.id,
        )
        student = queries.get_student_by_phone(state, self._phone)
        self._state = self._store.mark_attendance(state, student.id, self._session.id)
        self._student = student
        self._step = CheckInStep.SUCCESS
        return self._step

    def back_to_new_student_ask(self) -> CheckInStep:
        self._expect(CheckInStep.NEW_STUDENT_FORM)
        self._step = CheckInStep.NEW_STUDENT_ASK
        return self._step

    def reset(self) -> CheckInStep:
        """Start over with another phone number after being sent to the admin."""

        self._expect(CheckInStep.CONTACT_ADMIN)
        self._phone = ""
        self._student = None
        self._is_editing_name = False
        self._step = CheckInStep.PHONE
        return self._step

    def _refresh(self) -> None:
        # Writes start from the latest saved data, not the snapshot the flow opened with.
        self._state = self._store.load()
        self._group = queries.get_group(self._state, self._session.group_id) or self._group

    def _expect(self, step: CheckInStep) -> None:
        if self._step is CheckInStep.ERROR:
            raise InvalidTransitionError("This check-in link is not valid.")
        if self._step is not step:
            raise InvalidTransitionError(f"Cannot do that while at step '{self._step.value}'.")
