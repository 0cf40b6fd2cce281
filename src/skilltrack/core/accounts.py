"""Account administration and self-service profile management."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skilltrack.core import auth
from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    SkillTrackError,
)
from skilltrack.db import classes_repository, profiles_repository
from skilltrack.db.profiles_repository import ROLES, ProfileRecord
from skilltrack.mail.client import MailClient, get_mail_client

logger = structlog.get_logger(__name__)

# Sentinel for "leave unchanged"
_UNSET = object()


@dataclass
class StudentSummary:
    """A student with instructor and class names resolved."""

    profile: ProfileRecord
    instructor_name: str | None
    class_names: list[str]


def _get_profile(profile_id: str) -> ProfileRecord:
    profile = profiles_repository.get_profile_by_id(profile_id)
    if profile is None:
        raise NotFoundError(f"User '{profile_id}' not found")
    return profile


# =============================================================================
# ADMIN
# =============================================================================


def list_users(user: CurrentUser, role: str | None = None) -> list[ProfileRecord]:
    require_role(user, "admin")
    if role is not None and role not in ROLES:
        raise InvalidInputError(f"Unknown role '{role}'")
    return profiles_repository.list_profiles(role=role)


def update_user(
    user: CurrentUser,
    profile_id: str,
    full_name: str | None = None,
    role: str | None = None,
    affiliated_instructor: str | None | object = _UNSET,
) -> ProfileRecord:
    """Update another user's name, role and affiliation.

    The affiliation is only kept for students; changing a user to another
    role clears it. Users promoted to instructor get an instructor code.

    Raises:
        PermissionDeniedError: Caller is not an admin, or changes own role
        InvalidInputError: Unknown role or affiliation target
    """
    require_role(user, "admin")
    target = _get_profile(profile_id)

    if role is not None and role not in ROLES:
        raise InvalidInputError(f"Unknown role '{role}'")
    if role is not None and role != target.role and target.id == user.id:
        raise PermissionDeniedError("You cannot change your own role")
    if full_name is not None and not full_name.strip():
        raise InvalidInputError("Full name is required")

    new_role = role or target.role
    instructor_code = None
    if new_role == "instructor" and not target.instructor_code:
        instructor_code = auth.generate_instructor_code()

    profiles_repository.update_profile(
        profile_id,
        full_name=full_name.strip() if full_name is not None else None,
        role=role,
        instructor_code=instructor_code,
    )

    previous = target.affiliated_instructor
    new_affiliation = previous
    if new_role != "student":
        new_affiliation = None
    elif affiliated_instructor is not _UNSET:
        if affiliated_instructor is not None:
            instructor = profiles_repository.get_profile_by_id(affiliated_instructor)
            if instructor is None or not instructor.is_instructor:
                raise InvalidInputError(f"'{affiliated_instructor}' is not an instructor")
        new_affiliation = affiliated_instructor

    if new_affiliation != previous:
        profiles_repository.set_affiliated_instructor(profile_id, new_affiliation)
        if previous is not None:
            # Leaving an instructor also leaves their classes
            classes_repository.delete_enrollments_for_instructor(profile_id, previous)

    logger.info("account.updated", profile_id=profile_id, role=new_role, admin_id=user.id)
    return _get_profile(profile_id)


def create_user(
    user: CurrentUser,
    email: str,
    full_name: str,
    password: str,
    role: str,
    mail_client: MailClient | None = None,
) -> ProfileRecord:
    """Create an instructor or admin account and notify its owner."""
    require_role(user, "admin")
    if role not in ("instructor", "admin"):
        raise InvalidInputError("Admins can only create instructor or admin accounts")

    profile = auth.create_profile(email, password, full_name, role=role)
    logger.info("account.created", profile_id=profile.id, role=role, admin_id=user.id)

    # The account exists either way; a lost notice is only logged
    try:
        (mail_client or get_mail_client()).send_account_created(
            profile.email, profile.full_name, role
        )
    except SkillTrackError as e:
        logger.warning("account.notice_failed", profile_id=profile.id, error=str(e))
    return profile


def list_students(
    user: CurrentUser,
    instructor: str = "all",
    search: str | None = None,
) -> list[StudentSummary]:
    """List students for the admin student view.

    Args:
        user: Calling admin
        instructor: 'all', 'none' (unaffiliated) or an instructor id
        search: Name or email substring
    """
    require_role(user, "admin")

    kwargs: dict = {"role": "student", "search": search or None}
    if instructor == "none":
        kwargs["unaffiliated"] = True
    elif instructor != "all":
        kwargs["affiliated_instructor"] = instructor

    students = profiles_repository.list_profiles(**kwargs)
    instructors = {p.id: p.full_name for p in profiles_repository.list_profiles(role="instructor")}

    return [
        StudentSummary(
            profile=student,
            instructor_name=instructors.get(student.affiliated_instructor)
            if student.affiliated_instructor
            else None,
            class_names=[
                e.class_name for e in classes_repository.get_enrollments_for_student(student.id)
            ],
        )
        for student in students
    ]


def send_password_reset(
    user: CurrentUser,
    profile_id: str,
    mail_client: MailClient | None = None,
) -> None:
    """Mail a reset link to a user on an admin's request.

    Raises:
        ServiceUnavailableError: The mail could not be delivered
    """
    require_role(user, "admin")
    target = _get_profile(profile_id)
    if not auth.request_password_reset(target.email, mail_client=mail_client):
        raise ServiceUnavailableError("Password reset email could not be sent")
    logger.info("account.reset_sent", profile_id=profile_id, admin_id=user.id)


# =============================================================================
# SELF-SERVICE
# =============================================================================


def get_own_profile(user: CurrentUser) -> ProfileRecord:
    return _get_profile(user.id)


def update_own_profile(
    user: CurrentUser,
    full_name: str | None = None,
    email: str | None = None,
) -> ProfileRecord:
    """Update the caller's name and email.

    Raises:
        InvalidInputError: Empty name or malformed email
        ConflictError: Email used by another account
    """
    if full_name is not None and not full_name.strip():
        raise InvalidInputError("Full name is required")

    if email is not None:
        email = email.strip()
        if not auth.validate_email(email):
            raise InvalidInputError("Invalid email format")
        existing = profiles_repository.get_profile_by_email(email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("An account with this email already exists")

    profiles_repository.update_profile(
        user.id,
        full_name=full_name.strip() if full_name is not None else None,
        email=email,
    )
    logger.info("profile.updated", profile_id=user.id)
    return _get_profile(user.id)
