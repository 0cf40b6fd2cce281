"""Authentication and session management.

Sessions are opaque bearer tokens stored in auth_sessions. Passwords are
hashed with werkzeug. Admin impersonation issues a delegated session bound
to the target profile that records the impersonating admin.
"""

from __future__ import annotations

import re
import secrets
import sqlite3
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from skilltrack.config.app_config import load_app_config
from skilltrack.core.errors import (
    AuthError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    SkillTrackError,
)
from skilltrack.db import affiliations_repository, auth_repository, profiles_repository
from skilltrack.db.profiles_repository import ProfileRecord
from skilltrack.mail.client import MailClient, get_mail_client
from skilltrack.utils.retry import SESSION_EXPIRED_MESSAGE

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class AuthSession:
    """An issued bearer session."""

    token: str
    profile: ProfileRecord
    expires_at: str
    impersonator_id: str | None = None


@dataclass
class CurrentUser:
    """The caller behind a request.

    ``profile`` is the effective identity; during impersonation it is the
    target user and ``impersonator`` is the admin.
    """

    profile: ProfileRecord
    token: str
    impersonator: ProfileRecord | None = None

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def is_impersonating(self) -> bool:
        return self.impersonator is not None


# =============================================================================
# HELPERS
# =============================================================================


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def _check_password_policy(password: str) -> None:
    min_length = load_app_config().auth.min_password_length
    if len(password) < min_length:
        raise InvalidInputError(
            f"Password must be at least {min_length} characters long"
        )


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _expiry(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


def generate_instructor_code(length: int | None = None) -> str:
    """Generate an unused instructor affiliation code."""
    length = length or load_app_config().auth.instructor_code_length
    while True:
        code = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))
        if profiles_repository.get_instructor_by_code(code) is None:
            return code


def _issue_session(profile: ProfileRecord, impersonator_id: str | None = None) -> AuthSession:
    ttl = timedelta(hours=load_app_config().auth.session_ttl_hours)
    record = auth_repository.insert_session(
        token=secrets.token_urlsafe(32),
        profile_id=profile.id,
        expires_at=_expiry(ttl),
        impersonator_id=impersonator_id,
    )
    return AuthSession(
        token=record.token,
        profile=profile,
        expires_at=record.expires_at,
        impersonator_id=impersonator_id,
    )


# =============================================================================
# ACCOUNTS
# =============================================================================


def create_profile(
    email: str,
    password: str,
    full_name: str,
    role: str = "student",
) -> ProfileRecord:
    """Create a profile with a hashed password.

    Instructors get a fresh instructor code.

    Raises:
        InvalidInputError: Bad email, name, role or weak password
        ConflictError: Email already registered
    """
    email = email.strip()
    full_name = full_name.strip()

    if not validate_email(email):
        raise InvalidInputError("Invalid email format")
    if not full_name:
        raise InvalidInputError("Full name is required")
    if role not in profiles_repository.ROLES:
        raise InvalidInputError(f"Unknown role '{role}'")
    _check_password_policy(password)

    if profiles_repository.get_profile_by_email(email) is not None:
        raise ConflictError("An account with this email already exists")

    instructor_code = generate_instructor_code() if role == "instructor" else None

    try:
        profile = profiles_repository.insert_profile(
            full_name=full_name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            instructor_code=instructor_code,
        )
    except sqlite3.IntegrityError as e:
        raise ConflictError("An account with this email already exists") from e

    logger.info("auth.profile_created", profile_id=profile.id, role=role)
    return profile


def sign_up(
    email: str,
    password: str,
    full_name: str,
    instructor_code: str | None = None,
) -> AuthSession:
    """Register a student account and sign it in.

    When an instructor code is given, a pending affiliation request to that
    instructor is filed.

    Raises:
        InvalidInputError: Invalid input or unknown instructor code
        ConflictError: Email already registered
    """
    instructor = None
    if instructor_code and instructor_code.strip():
        instructor = profiles_repository.get_instructor_by_code(instructor_code.strip())
        if instructor is None:
            raise InvalidInputError("Invalid instructor code")

    profile = create_profile(email, password, full_name, role="student")

    if instructor is not None:
        affiliations_repository.insert_request(profile.id, instructor.id)
        logger.info(
            "auth.signup_affiliation_requested",
            profile_id=profile.id,
            instructor_id=instructor.id,
        )

    return _issue_session(profile)


def sign_in(email: str, password: str) -> AuthSession:
    """Authenticate with email and password.

    Raises:
        AuthError: Unknown email or wrong password
    """
    profile = profiles_repository.get_profile_by_email(email.strip())
    if profile is None:
        raise AuthError("No account found with this email address")
    if not verify_password(profile.password_hash, password):
        logger.info("auth.signin_failed", profile_id=profile.id)
        raise AuthError("Incorrect password")

    session = _issue_session(profile)
    logger.info("auth.signed_in", profile_id=profile.id, role=profile.role)
    return session


def sign_out(token: str) -> None:
    auth_repository.delete_session(token)
    logger.info("auth.signed_out")


def resolve_session(token: str) -> CurrentUser:
    """Resolve a bearer token to the calling user.

    Expired sessions, and sessions whose profile no longer exists, are
    revoked.

    Raises:
        AuthError: Unknown, expired or orphaned session
    """
    session = auth_repository.get_session(token)
    if session is None:
        raise AuthError("Not authenticated")

    if _parse_time(session.expires_at) <= datetime.now(timezone.utc):
        auth_repository.delete_session(token)
        raise AuthError(SESSION_EXPIRED_MESSAGE)

    profile = profiles_repository.get_profile_by_id(session.profile_id)
    if profile is None:
        auth_repository.delete_session(token)
        logger.warning("auth.session_profile_missing", profile_id=session.profile_id)
        raise AuthError("Profile not found. Please sign in again.")

    impersonator = None
    if session.impersonator_id:
        impersonator = profiles_repository.get_profile_by_id(session.impersonator_id)
        if impersonator is None:
            auth_repository.delete_session(token)
            raise AuthError("Profile not found. Please sign in again.")

    return CurrentUser(profile=profile, token=token, impersonator=impersonator)


# =============================================================================
# PASSWORDS
# =============================================================================


def request_password_reset(email: str, mail_client: MailClient | None = None) -> bool:
    """Mail a one-time reset link.

    Unknown emails and delivery failures are both accepted silently so the
    endpoint cannot be used to discover accounts.

    Returns:
        True if a reset mail was delivered
    """
    profile = profiles_repository.get_profile_by_email(email.strip())
    if profile is None:
        logger.info("auth.reset_unknown_email")
        return False

    token = secrets.token_urlsafe(32)
    ttl = timedelta(minutes=load_app_config().auth.reset_ttl_minutes)
    auth_repository.insert_password_reset(token, profile.id, _expiry(ttl))

    try:
        (mail_client or get_mail_client()).send_password_reset(
            profile.email, profile.full_name, token
        )
    except SkillTrackError as e:
        logger.warning("auth.reset_mail_failed", profile_id=profile.id, error=str(e))
        return False

    logger.info("auth.reset_requested", profile_id=profile.id)
    return True


def reset_password(token: str, new_password: str) -> None:
    """Set a new password using a reset token.

    Raises:
        AuthError: Token unknown, used or expired
        InvalidInputError: Weak password
    """
    reset = auth_repository.get_password_reset(token)
    if (
        reset is None
        or reset.used
        or _parse_time(reset.expires_at) <= datetime.now(timezone.utc)
    ):
        raise AuthError("Invalid or expired password reset link")

    _check_password_policy(new_password)

    profiles_repository.update_password_hash(reset.profile_id, hash_password(new_password))
    auth_repository.mark_password_reset_used(token)
    auth_repository.delete_sessions_for_profile(reset.profile_id)
    logger.info("auth.password_reset", profile_id=reset.profile_id)


def update_password(user: CurrentUser, new_password: str) -> None:
    """Change the caller's password and revoke all their sessions.

    Raises:
        PermissionDeniedError: While impersonating
        InvalidInputError: Weak password
    """
    if user.is_impersonating:
        raise PermissionDeniedError("Cannot change password while impersonating")

    _check_password_policy(new_password)

    profiles_repository.update_password_hash(user.id, hash_password(new_password))
    revoked = auth_repository.delete_sessions_for_profile(user.id)
    logger.info("auth.password_updated", profile_id=user.id, sessions_revoked=revoked)


# =============================================================================
# IMPERSONATION
# =============================================================================


def start_impersonation(admin: CurrentUser, target_id: str) -> AuthSession:
    """Issue a delegated session acting as ``target_id``.

    Raises:
        PermissionDeniedError: Caller is not an admin, is already
            impersonating, or the target is an admin
        NotFoundError: Target profile does not exist
    """
    if admin.is_impersonating:
        raise PermissionDeniedError("Stop the current impersonation first")
    if not admin.profile.is_admin:
        raise PermissionDeniedError("Only admins can impersonate users")

    target = profiles_repository.get_profile_by_id(target_id)
    if target is None:
        raise NotFoundError(f"User '{target_id}' not found")
    if target.is_admin:
        raise PermissionDeniedError("Admins cannot impersonate other admins")

    session = _issue_session(target, impersonator_id=admin.id)
    logger.info("auth.impersonation_started", admin_id=admin.id, target_id=target.id)
    return session


def stop_impersonation(user: CurrentUser) -> ProfileRecord:
    """End a delegated session.

    Returns:
        The impersonating admin's profile

    Raises:
        InvalidInputError: The session is not an impersonation
    """
    if user.impersonator is None:
        raise InvalidInputError("Not impersonating")

    auth_repository.delete_session(user.token)
    logger.info(
        "auth.impersonation_stopped",
        admin_id=user.impersonator.id,
        target_id=user.id,
    )
    return user.impersonator


# =============================================================================
# ROLE GUARDS
# =============================================================================


def require_role(user: CurrentUser, *roles: str) -> None:
    """Raise PermissionDeniedError unless the user holds one of ``roles``."""
    if user.role not in roles:
        raise PermissionDeniedError(
            f"This action requires role: {' or '.join(roles)}"
        )
