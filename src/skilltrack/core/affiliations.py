"""Student-instructor affiliation workflow.

A student requests affiliation with an instructor's code; the instructor
approves or rejects. Removing an affiliation, or approving a move to another
instructor, also drops the student from every class of the instructor they
leave.
"""

from __future__ import annotations

import sqlite3

import structlog

from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from skilltrack.db import affiliations_repository, classes_repository, profiles_repository
from skilltrack.db.affiliations_repository import AffiliationRequestRecord

logger = structlog.get_logger(__name__)


def request_affiliation(user: CurrentUser, instructor_code: str) -> AffiliationRequestRecord:
    """File a pending request to the instructor owning ``instructor_code``.

    Raises:
        InvalidInputError: Unknown code, or already affiliated with that instructor
        ConflictError: A request is already pending
    """
    require_role(user, "student")

    instructor = profiles_repository.get_instructor_by_code(instructor_code.strip())
    if instructor is None:
        raise InvalidInputError("Invalid instructor code")
    if user.profile.affiliated_instructor == instructor.id:
        raise InvalidInputError("You are already affiliated with this instructor")

    if affiliations_repository.get_pending_for_student(user.id) is not None:
        raise ConflictError("You already have a pending affiliation request")

    try:
        request_id = affiliations_repository.insert_request(user.id, instructor.id)
    except sqlite3.IntegrityError as e:
        raise ConflictError("You already have a pending affiliation request") from e

    logger.info(
        "affiliation.requested",
        request_id=request_id,
        student_id=user.id,
        instructor_id=instructor.id,
    )
    return affiliations_repository.get_request_by_id(request_id)


def list_pending_requests(user: CurrentUser) -> list[AffiliationRequestRecord]:
    require_role(user, "instructor")
    return affiliations_repository.list_pending_for_instructor(user.id)


def _get_own_pending(user: CurrentUser, request_id: str) -> AffiliationRequestRecord:
    require_role(user, "instructor")
    request = affiliations_repository.get_request_by_id(request_id)
    if request is None:
        raise NotFoundError(f"Affiliation request '{request_id}' not found")
    if request.instructor_id != user.id:
        raise PermissionDeniedError("This request is addressed to another instructor")
    if request.status != "pending":
        raise ConflictError(f"Request is already {request.status}")
    return request


def approve_request(user: CurrentUser, request_id: str) -> AffiliationRequestRecord:
    """Approve a request and link the student to the caller."""
    request = _get_own_pending(user, request_id)
    student = profiles_repository.get_profile_by_id(request.student_id)
    previous = student.affiliated_instructor if student else None

    affiliations_repository.set_request_status(request_id, "approved")
    profiles_repository.set_affiliated_instructor(request.student_id, user.id)

    # Moving to a new instructor leaves the old instructor's classes
    removed = 0
    if previous is not None and previous != user.id:
        removed = classes_repository.delete_enrollments_for_instructor(
            request.student_id, previous
        )

    logger.info(
        "affiliation.approved",
        request_id=request_id,
        student_id=request.student_id,
        instructor_id=user.id,
        previous_instructor_id=previous,
        enrollments_removed=removed,
    )
    return affiliations_repository.get_request_by_id(request_id)


def reject_request(user: CurrentUser, request_id: str) -> AffiliationRequestRecord:
    _get_own_pending(user, request_id)
    affiliations_repository.set_request_status(request_id, "rejected")
    logger.info("affiliation.rejected", request_id=request_id, instructor_id=user.id)
    return affiliations_repository.get_request_by_id(request_id)


def remove_affiliation(user: CurrentUser, student_id: str) -> int:
    """Unlink an affiliated student and drop them from the caller's classes.

    Returns:
        Number of class enrollments removed
    """
    require_role(user, "instructor")

    student = profiles_repository.get_profile_by_id(student_id)
    if student is None or not student.is_student:
        raise NotFoundError(f"Student '{student_id}' not found")
    if student.affiliated_instructor != user.id:
        raise PermissionDeniedError("Student is not affiliated with you")

    profiles_repository.set_affiliated_instructor(student_id, None)
    removed = classes_repository.delete_enrollments_for_instructor(student_id, user.id)

    logger.info(
        "affiliation.removed",
        student_id=student_id,
        instructor_id=user.id,
        enrollments_removed=removed,
    )
    return removed
