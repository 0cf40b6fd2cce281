"""Skill assignments.

Instructors assign skills to their affiliated students, each with a number
of required submissions and an optional due date.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

import structlog

from skilltrack.config.app_config import load_app_config
from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.classes import get_owned_class
from skilltrack.core.errors import InvalidInputError, NotFoundError, PermissionDeniedError
from skilltrack.db import (
    assignments_repository,
    classes_repository,
    logs_repository,
    profiles_repository,
    skills_repository,
)
from skilltrack.db.assignments_repository import AssignmentRecord
from skilltrack.db.profiles_repository import ProfileRecord

logger = structlog.get_logger(__name__)


@dataclass
class StudentTarget:
    """Per-student assignment settings."""

    student_id: str
    required_submissions: int = 1
    due_date: str | None = None


@dataclass
class AssignResult:
    created: int
    skipped: int


@dataclass
class AssignmentProgress:
    """An assignment with its submitted count."""

    assignment: AssignmentRecord
    completed_submissions: int

    @property
    def progress_label(self) -> str:
        return f"{self.completed_submissions}/{self.assignment.required_submissions}"


@dataclass
class StudentRow:
    """A student in the assignment view."""

    student: ProfileRecord
    class_id: str | None
    class_name: str | None
    assignments: list[AssignmentProgress] = field(default_factory=list)

    @property
    def is_assigned(self) -> bool:
        return bool(self.assignments)


@dataclass
class AssignmentListing:
    """One page of students split by assignment state."""

    assigned: list[StudentRow]
    unassigned: list[StudentRow]
    page: int
    page_size: int
    has_more: bool


def _check_due_date(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise InvalidInputError(f"Invalid due date '{value}'") from e


def _affiliated_student(instructor_id: str, student_id: str) -> ProfileRecord:
    student = profiles_repository.get_profile_by_id(student_id)
    if student is None or not student.is_student:
        raise NotFoundError(f"Student '{student_id}' not found")
    if student.affiliated_instructor != instructor_id:
        raise PermissionDeniedError(
            f"Student '{student.full_name}' is not affiliated with you"
        )
    return student


def assign_skills(
    user: CurrentUser,
    skill_ids: list[str],
    targets: list[StudentTarget],
) -> AssignResult:
    """Assign every skill to every target student.

    Existing (skill, student) assignments are left untouched.

    Raises:
        InvalidInputError: Nothing selected, unknown skill, bad settings
        PermissionDeniedError: A student is not affiliated with the caller
    """
    require_role(user, "instructor")
    if not skill_ids:
        raise InvalidInputError("Select at least one skill")
    if not targets:
        raise InvalidInputError("Select at least one student")

    found = {s.id for s in skills_repository.get_skills_by_ids(skill_ids)}
    missing = [sid for sid in skill_ids if sid not in found]
    if missing:
        raise InvalidInputError(f"Unknown skill(s): {', '.join(missing)}")

    rows: list[tuple[str, str, int, str | None]] = []
    for target in targets:
        _affiliated_student(user.id, target.student_id)
        if target.required_submissions < 1:
            raise InvalidInputError("Required submissions must be at least 1")
        due_date = _check_due_date(target.due_date)
        for skill_id in skill_ids:
            rows.append((skill_id, target.student_id, target.required_submissions, due_date))

    inserted = assignments_repository.insert_assignments(rows)
    result = AssignResult(created=len(inserted), skipped=len(rows) - len(inserted))
    logger.info(
        "assignments.created",
        instructor_id=user.id,
        skills=len(skill_ids),
        students=len(targets),
        created=result.created,
        skipped=result.skipped,
    )
    return result


def unassign_skills(user: CurrentUser, skill_ids: list[str], student_id: str) -> int:
    """Remove the given skills from a student.

    Returns:
        Number of assignments removed
    """
    require_role(user, "instructor")
    _affiliated_student(user.id, student_id)

    removed = sum(
        assignments_repository.delete_assignment(skill_id, student_id)
        for skill_id in skill_ids
    )
    logger.info("assignments.removed", student_id=student_id, removed=removed)
    return removed


def list_students_for_skills(
    user: CurrentUser,
    skill_ids: list[str],
    class_id: str | None = None,
    search: str | None = None,
    page: int = 1,
) -> AssignmentListing:
    """Affiliated students split into assigned/unassigned for some skills.

    Args:
        user: Calling instructor
        skill_ids: Skills to inspect
        class_id: Only students enrolled in this class
        search: Name substring
        page: 1-based page number
    """
    require_role(user, "instructor")
    if page < 1:
        raise InvalidInputError("Page must be 1 or greater")
    if class_id is not None:
        get_owned_class(user, class_id)

    page_size = load_app_config().assignments.page_size

    students = profiles_repository.list_profiles(
        role="student",
        affiliated_instructor=user.id,
        search=search or None,
    )
    if class_id is not None:
        enrolled = classes_repository.get_enrolled_student_ids(class_id)
        students = [s for s in students if s.id in enrolled]

    start = (page - 1) * page_size
    page_students = students[start : start + page_size]

    rows = _build_rows(page_students, skill_ids)
    return AssignmentListing(
        assigned=[r for r in rows if r.is_assigned],
        unassigned=[r for r in rows if not r.is_assigned],
        page=page,
        page_size=page_size,
        has_more=start + page_size < len(students),
    )


def _build_rows(students: list[ProfileRecord], skill_ids: list[str]) -> list[StudentRow]:
    student_ids = [s.id for s in students]
    wanted = set(student_ids)

    by_student: dict[str, list[AssignmentRecord]] = {}
    for assignment in assignments_repository.get_assignments_for_skills(skill_ids):
        if assignment.student_id in wanted:
            by_student.setdefault(assignment.student_id, []).append(assignment)

    submitted = logs_repository.count_submitted_by_skill(student_ids)

    rows: list[StudentRow] = []
    for student in students:
        enrollments = classes_repository.get_enrollments_for_student(student.id)
        first = enrollments[0] if enrollments else None
        rows.append(
            StudentRow(
                student=student,
                class_id=first.class_id if first else None,
                class_name=first.class_name if first else None,
                assignments=[
                    AssignmentProgress(
                        assignment=a,
                        completed_submissions=submitted.get((a.skill_id, student.id), 0),
                    )
                    for a in by_student.get(student.id, [])
                ],
            )
        )
    return rows


def list_assignment_rows(
    user: CurrentUser,
    skill_ids: list[str],
    class_id: str | None = None,
) -> list[StudentRow]:
    """Every assigned affiliated student for the skills (no paging)."""
    require_role(user, "instructor")
    students = profiles_repository.list_profiles(role="student", affiliated_instructor=user.id)
    if class_id is not None:
        get_owned_class(user, class_id)
        enrolled = classes_repository.get_enrolled_student_ids(class_id)
        students = [s for s in students if s.id in enrolled]
    return [row for row in _build_rows(students, skill_ids) if row.is_assigned]


def expire_overdue_assignments(today: date | None = None) -> int:
    """Mark pending assignments past their due date as expired.

    Returns:
        Number of assignments expired
    """
    today = today or date.today()
    expired = assignments_repository.expire_overdue(today.isoformat())
    logger.info("assignments.expired", count=expired, today=today.isoformat())
    return expired
