from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _decode_all(kind: str, raws: Iterable[Any], decode: Callable[[Mapping[str, Any]], RecordT]) -> tuple[RecordT, ...]:
    records = []
    for raw in raws or ():
        try:
            records.append(decode(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed %s record %r: %r", kind, raw, exc)
    return tuple(records)


@dataclass(slots=True, frozen=True)
class Course:
    id: str
    name: str
    name_en: str = ""
    description: str = ""
    icon: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "nameEn": self.name_en,
            "description": self.description,
            "icon": self.icon,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Course":
        return cls(
            id=str(raw["id"]),
            name=str(raw["name"]),
            name_en=str(raw.get("nameEn") or ""),
            description=str(raw.get("description") or ""),
            icon=str(raw.get("icon") or ""),
            created_at=str(raw.get("createdAt") or ""),
        )


@dataclass(slots=True, frozen=True)
class Group:
    id: str
    course_id: str
    name: str
    instructor_name: str = ""
    max_capacity: Optional[int] = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "courseId": self.course_id,
            "name": self.name,
            "instructorName": self.instructor_name,
            "maxCapacity": self.max_capacity,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Group":
        return cls(
            id=str(raw["id"]),
            course_id=str(raw["courseId"]),
            name=str(raw["name"]),
            instructor_name=str(raw.get("instructorName") or ""),
            max_capacity=_optional_int(raw.get("maxCapacity")),
            created_at=str(raw.get("createdAt") or ""),
        )


@dataclass(slots=True, frozen=True)
class Student:
    id: str
    full_name: str
    phone_number: str
    is_new: bool = True
    certificate_fee_paid: bool = False
    first_installment_paid: bool = False
    second_installment_paid: bool = False
    course_id: Optional[str] = None
    group_id: Optional[str] = None
    created_at: str = ""

    @property
    def fees_paid(self) -> tuple[bool, bool, bool]:
        return (
            self.certificate_fee_paid,
            self.first_installment_paid,
            self.second_installment_paid,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "isNew": self.is_new,
            "certificateFeePaid": self.certificate_fee_paid,
            "firstInstallmentPaid": self.first_installment_paid,
            "secondInstallmentPaid": self.second_installment_paid,
            "courseId": self.course_id,
            "groupId": self.group_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Student":
        return cls(
            id=str(raw["id"]),
            full_name=str(raw["fullName"]),
            phone_number=str(raw["phoneNumber"]),
            is_new=bool(raw.get("isNew", True)),
            certificate_fee_paid=bool(raw.get("certificateFeePaid", False)),
            first_installment_paid=bool(raw.get("firstInstallmentPaid", False)),
            second_installment_paid=bool(raw.get("secondInstallmentPaid", False)),
            course_id=_optional_str(raw.get("courseId")),
            group_id=_optional_str(raw.get("groupId")),
            created_at=str(raw.get("createdAt") or ""),
        )


@dataclass(slots=True, frozen=True)
class Session:
    id: str
    group_id: str
    title: str
    date: str
    qr_token: str
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "groupId": self.group_id,
            "title": self.title,
            "date": self.date,
            "qrToken": self.qr_token,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Session":
        return cls(
            id=str(raw["id"]),
            group_id=str(raw["groupId"]),
            title=str(raw.get("title") or ""),
            date=str(raw.get("date") or ""),
            qr_token=str(raw["qrToken"]),
            created_at=str(raw.get("createdAt") or ""),
        )


@dataclass(slots=True, frozen=True)
class Attendance:
    id: str
    student_id: str
    session_id: str
    attended_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "sessionId": self.session_id,
            "attendedAt": self.attended_at,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Attendance":
        return cls(
            id=str(raw["id"]),
            student_id=str(raw["studentId"]),
            session_id=str(raw["sessionId"]),
            attended_at=str(raw.get("attendedAt") or ""),
        )


@dataclass(slots=True, frozen=True)
class AppState:
    """Snapshot of everything the academy keeps.

    Instances are never modified; every store operation returns a new one.
    """

    courses: tuple[Course, ...] = ()
    groups: tuple[Group, ...] = ()
    students: tuple[Student, ...] = ()
    sessions: tuple[Session, ...] = ()
    attendance: tuple[Attendance, ...] = ()
    is_authenticated: bool = False

    def to_payload(self) -> dict[str, list[dict[str, Any]]]:
        """Serializable form of the collections; the auth flag is stored separately."""

        return {
            "courses": [course.to_dict() for course in self.courses],
            "groups": [group.to_dict() for group in self.groups],
            "students": [student.to_dict() for student in self.students],
            "sessions": [session.to_dict() for session in self.sessions],
            "attendance": [record.to_dict() for record in self.attendance],
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, is_authenticated: bool = False) -> "AppState":
        return cls(
            courses=_decode_all("course", payload.get("courses"), Course.from_dict),
            groups=_decode_all("group", payload.get("groups"), Group.from_dict),
            students=_decode_all("student", payload.get("students"), Student.from_dict),
            sessions=_decode_all("session", payload.get("sessions"), Session.from_dict),
            attendance=_decode_all("attendance", payload.get("attendance"), Attendance.from_dict),
            is_authenticated=is_authenticated,
        )
