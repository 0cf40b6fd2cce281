"""Progress tracking against skill assignments."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.db import (
    assignments_repository,
    classes_repository,
    logs_repository,
    profiles_repository,
)
from skilltrack.db.assignments_repository import AssignmentRecord

logger = structlog.get_logger(__name__)


def calculate_progress(completed: int, total: int) -> float:
    """Percentage of ``total`` reached, clamped to [0, 100]."""
    if total <= 0:
        return 0.0
    return max(0.0, min(completed / total * 100, 100.0))


def status_text(status: str, submission_count: int, required_submissions: int) -> str:
    """Human label for an assignment's state."""
    if status == "expired":
        return "Expired"
    if status == "completed":
        return "Completed"
    return "Incomplete" if submission_count < required_submissions else "Completed"


@dataclass
class SkillProgress:
    """Progress on one assigned skill."""

    skill_id: str
    skill_name: str
    category_name: str
    status: str
    submission_count: int
    required_submissions: int
    due_date: str | None

    @property
    def percentage(self) -> float:
        return calculate_progress(self.submission_count, self.required_submissions)

    @property
    def status_label(self) -> str:
        return status_text(self.status, self.submission_count, self.required_submissions)


@dataclass
class StudentOverview:
    """An affiliated student's progress across their assignments."""

    student_id: str
    full_name: str
    email: str
    class_id: str | None
    class_name: str | None
    skills: list[SkillProgress] = field(default_factory=list)

    @property
    def completed_skills(self) -> int:
        return sum(1 for s in self.skills if s.status_label == "Completed")

    @property
    def percentage(self) -> float:
        return calculate_progress(self.completed_skills, len(self.skills))


def _to_progress(assignment: AssignmentRecord, counts: dict[tuple[str, str], int]) -> SkillProgress:
    return SkillProgress(
        skill_id=assignment.skill_id,
        skill_name=assignment.skill_name,
        category_name=assignment.category_name,
        status=assignment.status,
        submission_count=counts.get((assignment.skill_id, assignment.student_id), 0),
        required_submissions=assignment.required_submissions,
        due_date=assignment.due_date,
    )


def student_skill_progress(student_id: str) -> list[SkillProgress]:
    """Progress on every skill assigned to a student."""
    counts = logs_repository.count_submitted_by_skill([student_id])
    return [
        _to_progress(a, counts)
        for a in assignments_repository.get_assignments_for_student(student_id)
    ]


def my_progress(user: CurrentUser) -> list[SkillProgress]:
    require_role(user, "student")
    return student_skill_progress(user.id)


def instructor_overview(
    user: CurrentUser,
    search: str | None = None,
    class_id: str | None = None,
) -> list[StudentOverview]:
    """Progress of every affiliated student.

    Args:
        user: Calling instructor
        search: Case-insensitive name substring
        class_id: Only students whose first class is this one
    """
    require_role(user, "instructor")

    students = profiles_repository.list_profiles(role="student", affiliated_instructor=user.id)
    if search:
        needle = search.lower()
        students = [s for s in students if needle in s.full_name.lower()]

    counts = logs_repository.count_submitted_by_skill([s.id for s in students])

    overview: list[StudentOverview] = []
    for student in students:
        enrollments = classes_repository.get_enrollments_for_student(student.id)
        first = enrollments[0] if enrollments else None
        if class_id is not None and (first is None or first.class_id != class_id):
            continue
        overview.append(
            StudentOverview(
                student_id=student.id,
                full_name=student.full_name,
                email=student.email,
                class_id=first.class_id if first else None,
                class_name=first.class_name if first else None,
                skills=[
                    _to_progress(a, counts)
                    for a in assignments_repository.get_assignments_for_student(student.id)
                ],
            )
        )

    logger.debug("progress.overview_built", instructor_id=user.id, students=len(overview))
    return overview
