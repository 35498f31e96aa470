"""Versioned upgrades of the persisted state blob.

Each step takes the raw decoded blob (plain dicts and lists, camelCase keys)
and returns the upgraded blob. Steps are applied in order to any blob whose
``schemaVersion`` is below the step's version, then the blob is stamped with
:data:`CURRENT_SCHEMA_VERSION`. Blobs written before versioning existed have
no ``schemaVersion`` and go through every step, so each step must leave
already-current data untouched.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, NamedTuple

from academy_app.models import DEFAULT_COURSES, DEFAULT_GROUP_NAME
from academy_app.utils import now_iso

logger = logging.getLogger(__name__)

SCHEMA_VERSION_KEY = "schemaVersion"
COLLECTION_KEYS = ("courses", "groups", "students", "sessions", "attendance")

Blob = dict[str, Any]


class Migration(NamedTuple):
    version: int
    name: str
    apply: Callable[[Blob], Blob]


def seed_courses() -> list[dict[str, Any]]:
    created_at = now_iso()
    return [
        {
            "id": str(uuid.uuid4()),
            "name": seed["name"],
            "nameEn": seed["name_en"],
            "description": seed["description"],
            "icon": seed["icon"],
            "createdAt": created_at,
        }
        for seed in DEFAULT_COURSES
    ]


def ensure_collections(blob: Blob) -> Blob:
    upgraded = dict(blob)
    if not isinstance(upgraded.get("courses"), list):
        upgraded["courses"] = seed_courses()
    for key in COLLECTION_KEYS[1:]:
        if not isinstance(upgraded.get(key), list):
            upgraded[key] = []
    return upgraded


def _records_with_ids(blob: Blob, key: str) -> list[dict[str, Any]]:
    """Records of ``key`` that can be upgraded; anything without an id is dropped."""

    kept = []
    for record in blob.get(key) or []:
        if isinstance(record, dict) and record.get("id"):
            kept.append(record)
        else:
            logger.warning("Dropping unreadable %s record: %r", key, record)
    return kept


def backfill_group_fields(blob: Blob) -> Blob:
    courses = _records_with_ids(blob, "courses")
    first_course_id = courses[0]["id"] if courses else ""

    groups = []
    for group in _records_with_ids(blob, "groups"):
        groups.append(
            {
                "id": group["id"],
                "courseId": group.get("courseId") or first_course_id,
                "name": group.get("name") or group.get("nameEn") or DEFAULT_GROUP_NAME,
                "instructorName": group.get("instructorName") or "",
                "maxCapacity": group.get("maxCapacity") or None,
                "createdAt": group.get("createdAt") or now_iso(),
            }
        )
    return {**blob, "groups": groups}


def collapse_student_group_ids(blob: Blob) -> Blob:
    students = []
    for student in _records_with_ids(blob, "students"):
        is_new = student.get("isNew")
        if "groupId" in student:
            group_id = student["groupId"]
        else:
            legacy_ids = student.get("groupIds") or []
            group_id = legacy_ids[0] if legacy_ids else None

        students.append(
            {
                "id": student["id"],
                "fullName": student.get("fullName", ""),
                "phoneNumber": student.get("phoneNumber", ""),
                "isNew": True if is_new is None else bool(is_new),
                "certificateFeePaid": bool(student.get("certificateFeePaid") or False),
                "firstInstallmentPaid": bool(student.get("firstInstallmentPaid") or False),
                "secondInstallmentPaid": bool(student.get("secondInstallmentPaid") or False),
                "courseId": student.get("courseId"),
                "groupId": group_id,
                "createdAt": student.get("createdAt") or now_iso(),
            }
        )
    return {**blob, "students": students}


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "ensure_collections", ensure_collections),
    Migration(2, "backfill_group_fields", backfill_group_fields),
    Migration(3, "collapse_student_group_ids", collapse_student_group_ids),
)

CURRENT_SCHEMA_VERSION = MIGRATIONS[-1].version


def blob_version(blob: Blob) -> int:
    try:
        return int(blob.get(SCHEMA_VERSION_KEY, 0))
    except (TypeError, ValueError):
        return 0


def migrate(blob: Blob) -> tuple[Blob, list[str]]:
    """Upgrade ``blob`` to the current schema.

    Returns the upgraded blob and the names of the steps that ran.
    """

    version = blob_version(blob)
    applied: list[str] = []

    for migration in MIGRATIONS:
        if migration.version <= version:
            continue
        blob = migration.apply(blob)
        applied.append(migration.name)
        logger.info("Applied state migration %s (v%d)", migration.name, migration.version)

    blob = {**blob, SCHEMA_VERSION_KEY: max(version, CURRENT_SCHEMA_VERSION)}
    return blob, applied
