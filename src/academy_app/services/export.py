from __future__ import annotations

import csv
import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence

from academy_app.models import AppState, Student
from academy_app.services import queries
from academy_app.utils import today_iso

logger = logging.getLogger(__name__)

BOM = "\ufeff"
ATTENDED_MARK = "✓"
ABSENT_MARK = "✗"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Render ``rows`` as CSV text with a UTF-8 byte-order mark.

    The header is the keys of the first row. Fields holding commas, quotes or
    line breaks are quoted, with embedded quotes doubled.
    """

    if not rows:
        return ""

    headers = list(rows[0].keys())
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(row.get(header)) for header in headers])
    return BOM + out.getvalue()


def _sanitize_name(raw_name: str) -> str:
    sanitized = re.sub(r'[<>:"/\\|?*]', "_", raw_name)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()
    sanitized = sanitized.strip("._ ")
    return sanitized or "export"


def export_filename(logical_name: str, today: Optional[date] = None) -> str:
    return f"{_sanitize_name(logical_name)}-{today_iso(today)}.csv"


def write_csv(
    rows: Sequence[Mapping[str, Any]],
    directory: Path,
    logical_name: str,
    *,
    today: Optional[date] = None,
) -> Optional[Path]:
    """Write ``rows`` to ``directory``; returns the file path, or None when there is nothing to export."""

    if not rows:
        return None

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(logical_name, today)
    with path.open("w", newline="", encoding="utf-8") as handle:
        handle.write(to_csv(rows))

    logger.info("Exported %d row(s) to %s", len(rows), path)
    return path


def _paid(flag: bool) -> str:
    return "Paid" if flag else "Unpaid"


def student_export_rows(state: AppState, students: Iterable[Student]) -> list[dict[str, str]]:
    rows = []
    for student in students:
        course = queries.get_course(state, student.course_id)
        group = queries.get_group(state, student.group_id)
        rows.append(
            {
                "Full name": student.full_name,
                "Phone number": student.phone_number,
                "Student type": "New" if student.is_new else "Returning",
                "Course": course.name if course else "-",
                "Group": group.name if group else "-",
                "Certificate fee": _paid(student.certificate_fee_paid),
                "First installment": _paid(student.first_installment_paid),
                "Second installment": _paid(student.second_installment_paid),
            }
        )
    return rows


def group_attendance_rows(state: AppState, group_id: str) -> list[dict[str, str]]:
    """One row per group member with a ✓/✗ column per session, oldest first."""

    sessions = queries.get_sessions_by_group(state, group_id)
    rows = []
    for student in queries.get_students_by_group(state, group_id):
        row = {
            "Full name": student.full_name,
            "Phone number": student.phone_number,
            "New/Returning": "New" if student.is_new else "Returning",
            "Certificate fee": _paid(student.certificate_fee_paid),
            "First installment": _paid(student.first_installment_paid),
            "Second installment": _paid(student.second_installment_paid),
        }
        for index, session in enumerate(sessions, start=1):
            attended = queries.has_attended(state, student.id, session.id)
            row[f"Session {index}"] = ATTENDED_MARK if attended else ABSENT_MARK
        rows.append(row)
    return rows


def group_export_name(state: AppState, group_id: str) -> str:
    group = queries.get_group(state, group_id)
    course = queries.get_course(state, group.course_id) if group else None
    return f"{course.name if course else 'course'}-{group.name if group else 'group'}"
