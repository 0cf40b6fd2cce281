"""Instructor reports and CSV exports."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from skilltrack.core.assignments import StudentRow
from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import InvalidInputError
from skilltrack.db import logs_repository, profiles_repository
from skilltrack.db.logs_repository import LOG_STATUSES, SkillLogRecord

logger = structlog.get_logger(__name__)

LOG_EXPORT_COLUMNS = (
    "Student Name",
    "Student Email",
    "Skill",
    "Category",
    "Class",
    "Status",
    "Submitted",
    "Evaluator",
    "Evaluation Type",
)

ASSIGNMENT_EXPORT_COLUMNS = ("Student Name", "Email", "Class", "Status", "Progress")


@dataclass
class LogReportFilter:
    """Filters for the skill-log report."""

    search: str | None = None
    class_id: str | None = None
    status: str | None = None
    student_ids: list[str] = field(default_factory=list)


def skill_log_report(
    user: CurrentUser,
    filters: LogReportFilter | None = None,
) -> list[SkillLogRecord]:
    """Logs of the caller's affiliated students matching the filters.

    Raises:
        InvalidInputError: Unknown status filter
    """
    require_role(user, "instructor")
    filters = filters or LogReportFilter()

    if filters.status is not None and filters.status not in LOG_STATUSES:
        raise InvalidInputError(f"Unknown status '{filters.status}'")

    students = profiles_repository.list_profiles(role="student", affiliated_instructor=user.id)
    affiliated = {p.id for p in students}
    if filters.student_ids:
        student_ids = [sid for sid in filters.student_ids if sid in affiliated]
    else:
        student_ids = sorted(affiliated)

    logs = logs_repository.list_logs(
        student_ids=student_ids,
        class_id=filters.class_id,
        status=filters.status,
        search=filters.search or None,
    )
    logger.debug("report.logs_built", instructor_id=user.id, rows=len(logs))
    return logs


def _write_csv(header: tuple[str, ...], rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _submitted_date(created_at: str) -> str:
    try:
        return datetime.fromisoformat(created_at).date().isoformat()
    except ValueError:
        return created_at


def export_logs_csv(logs: list[SkillLogRecord]) -> str:
    """Render skill logs as CSV text."""
    return _write_csv(
        LOG_EXPORT_COLUMNS,
        [
            [
                log.student_name or "Unknown",
                log.student_email or "Unknown",
                log.skill_name or "Unknown",
                log.category_name or "Unknown",
                log.class_name or "No Class",
                log.status,
                _submitted_date(log.created_at),
                log.evaluator_name,
                log.evaluator_type,
            ]
            for log in logs
        ],
    )


def export_assignments_csv(rows: list[StudentRow]) -> str:
    """Render assignment rows as CSV text, one line per assignment."""
    lines: list[list[str]] = []
    for row in rows:
        base = [row.student.full_name, row.student.email, row.class_name or "No Class"]
        if not row.assignments:
            lines.append(base + ["Not Assigned", "N/A"])
            continue
        for progress in row.assignments:
            lines.append(base + [progress.assignment.status, progress.progress_label])
    return _write_csv(ASSIGNMENT_EXPORT_COLUMNS, lines)
