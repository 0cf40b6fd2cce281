"""Skill log submission and review.

A student submits a log (one attempt) against a skill assigned to them. The
responses are validated against the skill's verification form. A student may
also log an attempt on behalf of a classmate they evaluated; the log is then
credited to the classmate and records the submitter as the evaluator student.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import (
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from skilltrack.core.form_schema import parse_form_schema, validate_responses
from skilltrack.db import (
    assignments_repository,
    classes_repository,
    logs_repository,
    profiles_repository,
    skills_repository,
)
from skilltrack.db.assignments_repository import AssignmentRecord
from skilltrack.db.logs_repository import COUNTED_STATUSES, SkillLogRecord

logger = structlog.get_logger(__name__)

REVIEW_STATUSES = ("verified", "rejected")


@dataclass
class SubmissionResult:
    """Outcome of a log submission."""

    log: SkillLogRecord
    counted_submissions: int
    required_submissions: int
    assignment_completed: bool


def submit_skill_log(
    user: CurrentUser,
    skill_id: str,
    responses: dict[str, Any],
    evaluator_name: str,
    evaluator_type: str | None = None,
    instructor_signature: str | None = None,
    classmate_id: str | None = None,
) -> SubmissionResult:
    """Submit a skill log.

    Args:
        user: Submitting student
        skill_id: Skill being logged
        responses: Map of question id to answer
        evaluator_name: Name of the person who evaluated the attempt
        evaluator_type: 'peer' or 'instructor' (defaults to the skill's
            verification type)
        instructor_signature: Signature data, required for instructor
            verification
        classmate_id: Log on behalf of this classmate

    Returns:
        SubmissionResult with the stored log and quota state

    Raises:
        PermissionDeniedError: Caller is not a student, or classmate is not
            in a shared class
        InvalidInputError: Skill not assigned or not pending, missing
            evaluator or signature
        FormValidationError: Responses do not satisfy the form
    """
    require_role(user, "student")

    skill = skills_repository.get_skill_by_id(skill_id)
    if skill is None:
        raise NotFoundError(f"Skill '{skill_id}' not found")

    credited_id = user.id
    evaluated_student_id = None
    if classmate_id and classmate_id != user.id:
        classmate_ids = {c.student_id for c in classes_repository.get_classmates(user.id)}
        if classmate_id not in classmate_ids:
            raise PermissionDeniedError("You can only log skills for your classmates")
        credited_id = classmate_id
        evaluated_student_id = user.id

    assignment = assignments_repository.get_assignment(skill_id, credited_id)
    if assignment is None:
        raise InvalidInputError("This skill is not assigned to the student")
    if assignment.status != "pending":
        raise InvalidInputError(f"This skill assignment is {assignment.status}")

    evaluator_name = evaluator_name.strip()
    if not evaluator_name:
        raise InvalidInputError("Please provide the evaluator's name")

    evaluator_type = evaluator_type or skill.verification_type
    if evaluator_type not in ("peer", "instructor"):
        raise InvalidInputError(f"Unknown evaluator type '{evaluator_type}'")
    if skill.verification_type == "instructor" and evaluator_type != "instructor":
        raise InvalidInputError("This skill requires instructor verification")
    if evaluator_type == "instructor" and not (instructor_signature or "").strip():
        raise InvalidInputError("Instructor signature is required")

    cleaned = validate_responses(parse_form_schema(skill.form_schema), responses)

    attempt_number = logs_repository.count_logs(skill_id, credited_id) + 1
    enrollments = classes_repository.get_enrollments_for_student(credited_id)
    class_id = enrollments[0].class_id if enrollments else None

    log_id = logs_repository.insert_log(
        skill_id=skill_id,
        student_id=credited_id,
        responses=cleaned,
        attempt_number=attempt_number,
        evaluator_name=evaluator_name,
        evaluator_type=evaluator_type,
        evaluated_student_id=evaluated_student_id,
        class_id=class_id,
        instructor_signature=instructor_signature if evaluator_type == "instructor" else None,
    )

    counted = logs_repository.count_logs(skill_id, credited_id, COUNTED_STATUSES)
    completed = counted >= assignment.required_submissions
    if completed:
        assignments_repository.update_status(assignment.id, "completed")

    logger.info(
        "skill_log.submitted",
        log_id=log_id,
        skill_id=skill_id,
        student_id=credited_id,
        submitted_by=user.id,
        attempt_number=attempt_number,
        assignment_completed=completed,
    )

    return SubmissionResult(
        log=logs_repository.get_log_by_id(log_id),
        counted_submissions=counted,
        required_submissions=assignment.required_submissions,
        assignment_completed=completed,
    )


def list_my_logs(user: CurrentUser) -> list[SkillLogRecord]:
    require_role(user, "student")
    return logs_repository.list_logs(student_ids=[user.id])


def loggable_skills(user: CurrentUser) -> list[AssignmentRecord]:
    """Pending assignments the student can log against."""
    require_role(user, "student")
    return assignments_repository.get_assignments_for_student(user.id, status="pending")


def review_log(user: CurrentUser, log_id: str, status: str) -> SkillLogRecord:
    """Mark a log of an affiliated student as verified or rejected.

    Raises:
        InvalidInputError: Unknown status
        NotFoundError: Log does not exist
        PermissionDeniedError: Log's student is not affiliated with the caller
    """
    require_role(user, "instructor")
    if status not in REVIEW_STATUSES:
        raise InvalidInputError(f"Status must be one of: {', '.join(REVIEW_STATUSES)}")

    log = logs_repository.get_log_by_id(log_id)
    if log is None:
        raise NotFoundError(f"Skill log '{log_id}' not found")

    student = profiles_repository.get_profile_by_id(log.student_id)
    if student is None or student.affiliated_instructor != user.id:
        raise PermissionDeniedError("You can only review logs of your own students")

    logs_repository.update_log_status(log_id, status)
    logger.info("skill_log.reviewed", log_id=log_id, status=status, instructor_id=user.id)
    return logs_repository.get_log_by_id(log_id)
