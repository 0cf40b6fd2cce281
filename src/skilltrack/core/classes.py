"""Class management for instructors.

Instructors group their affiliated students into classes with a date range.
Classes are archived rather than deleted.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import date, timedelta

import structlog

from skilltrack.config.app_config import load_app_config
from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from skilltrack.db import classes_repository, profiles_repository
from skilltrack.db.classes_repository import ClassmateRecord, ClassRecord
from skilltrack.db.profiles_repository import ProfileRecord

logger = structlog.get_logger(__name__)


@dataclass
class Roster:
    """Affiliated students split by enrollment in one class."""

    class_id: str
    enrolled: list[ProfileRecord] = field(default_factory=list)
    available: list[ProfileRecord] = field(default_factory=list)


def _parse_date(value: str, label: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidInputError(f"{label} must be a date (YYYY-MM-DD)") from e


def get_owned_class(user: CurrentUser, class_id: str) -> ClassRecord:
    """Get a class owned by the calling instructor.

    Raises:
        NotFoundError: Class does not exist
        PermissionDeniedError: Class belongs to another instructor
    """
    require_role(user, "instructor")
    cls = classes_repository.get_class_by_id(class_id)
    if cls is None:
        raise NotFoundError(f"Class '{class_id}' not found")
    if cls.instructor_id != user.id:
        raise PermissionDeniedError("You can only manage your own classes")
    return cls


def _get_affiliated_student(instructor_id: str, student_id: str) -> ProfileRecord:
    student = profiles_repository.get_profile_by_id(student_id)
    if student is None or not student.is_student:
        raise NotFoundError(f"Student '{student_id}' not found")
    if student.affiliated_instructor != instructor_id:
        raise PermissionDeniedError("Student is not affiliated with you")
    return student


def create_class(
    user: CurrentUser,
    name: str,
    description: str = "",
    start_date: str | None = None,
    end_date: str | None = None,
) -> ClassRecord:
    """Create a class.

    Args:
        user: Calling instructor
        name: Class name (required)
        description: Free text
        start_date: ISO date, defaults to today
        end_date: ISO date, defaults to start + configured days

    Raises:
        InvalidInputError: Missing name, bad dates or end before start
    """
    require_role(user, "instructor")

    name = name.strip()
    if not name:
        raise InvalidInputError("Class name is required")

    start = _parse_date(start_date, "Start date") if start_date else date.today()
    if end_date:
        end = _parse_date(end_date, "End date")
    else:
        end = start + timedelta(days=load_app_config().assignments.default_class_days)
    if end < start:
        raise InvalidInputError("End date cannot be before start date")

    cls = classes_repository.insert_class(
        instructor_id=user.id,
        name=name,
        description=description.strip(),
        start_date=start.isoformat(),
        end_date=end.isoformat(),
    )
    logger.info("class.created", class_id=cls.id, instructor_id=user.id)
    return cls


def list_classes(user: CurrentUser, archived: bool = False) -> list[ClassRecord]:
    """Active (or archived) classes of the caller, with student counts."""
    require_role(user, "instructor")
    return classes_repository.get_classes_for_instructor(user.id, archived=archived)


def archive_class(user: CurrentUser, class_id: str) -> ClassRecord:
    get_owned_class(user, class_id)
    classes_repository.set_archived(class_id, True)
    logger.info("class.archived", class_id=class_id)
    return get_owned_class(user, class_id)


def restore_class(user: CurrentUser, class_id: str) -> ClassRecord:
    get_owned_class(user, class_id)
    classes_repository.set_archived(class_id, False)
    logger.info("class.restored", class_id=class_id)
    return get_owned_class(user, class_id)


def get_roster(user: CurrentUser, class_id: str) -> Roster:
    """Split the caller's affiliated students into enrolled and available."""
    get_owned_class(user, class_id)
    students = profiles_repository.list_profiles(
        role="student", affiliated_instructor=user.id
    )
    enrolled_ids = classes_repository.get_enrolled_student_ids(class_id)

    roster = Roster(class_id=class_id)
    for student in students:
        if student.id in enrolled_ids:
            roster.enrolled.append(student)
        else:
            roster.available.append(student)
    return roster


def enroll_student(user: CurrentUser, class_id: str, student_id: str) -> None:
    """Enroll an affiliated student.

    Raises:
        ConflictError: Already enrolled
    """
    cls = get_owned_class(user, class_id)
    if cls.archived:
        raise InvalidInputError("Cannot enroll students in an archived class")
    _get_affiliated_student(user.id, student_id)

    try:
        classes_repository.insert_enrollment(class_id, student_id)
    except sqlite3.IntegrityError as e:
        raise ConflictError("Student is already enrolled in this class") from e

    logger.info("class.student_enrolled", class_id=class_id, student_id=student_id)


def unenroll_student(user: CurrentUser, class_id: str, student_id: str) -> None:
    get_owned_class(user, class_id)
    if not classes_repository.delete_enrollment(class_id, student_id):
        raise NotFoundError("Student is not enrolled in this class")
    logger.info("class.student_unenrolled", class_id=class_id, student_id=student_id)


def list_classmates(user: CurrentUser) -> list[ClassmateRecord]:
    """Students sharing an active class with the caller (self excluded)."""
    require_role(user, "student")
    return classes_repository.get_classmates(user.id)
