"""Tests for sign-up, sessions, password resets and impersonation."""

from datetime import datetime, timedelta, timezone

import pytest

from skilltrack.core import auth
from skilltrack.core.errors import (
    AuthError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from skilltrack.db import affiliations_repository, auth_repository, profiles_repository
from skilltrack.db.database import get_db
from skilltrack.utils.retry import SESSION_EXPIRED_MESSAGE


def _reset_token(outbox):
    body = outbox[-1].body
    return body.split("token=", 1)[1].split()[0]


class TestCreateProfile:
    """Tests for create_profile."""

    def test_instructor_gets_code(self):
        """Instructors receive an affiliation code."""
        profile = auth.create_profile("teach@example.com", "secret123", "Teach", "instructor")
        assert profile.instructor_code
        assert len(profile.instructor_code) == 8

    def test_student_has_no_code(self):
        profile = auth.create_profile("kid@example.com", "secret123", "Kid")
        assert profile.role == "student"
        assert profile.instructor_code is None

    def test_password_is_hashed(self):
        """Stored hash verifies but is not the password."""
        profile = auth.create_profile("kid@example.com", "secret123", "Kid")
        assert profile.password_hash != "secret123"
        assert auth.verify_password(profile.password_hash, "secret123")
        assert not auth.verify_password(profile.password_hash, "wrong")

    def test_duplicate_email_conflicts(self):
        auth.create_profile("kid@example.com", "secret123", "Kid")
        with pytest.raises(ConflictError, match="already exists"):
            auth.create_profile("kid@example.com", "secret123", "Other")

    @pytest.mark.parametrize(
        "email,password,name",
        [
            ("not-an-email", "secret123", "Kid"),
            ("kid@example.com", "123", "Kid"),
            ("kid@example.com", "secret123", "  "),
        ],
    )
    def test_rejects_bad_input(self, email, password, name):
        with pytest.raises(InvalidInputError):
            auth.create_profile(email, password, name)


class TestSignUp:
    """Tests for sign_up."""

    def test_returns_session(self):
        """Sign-up signs the new student in."""
        session = auth.sign_up("new@example.com", "secret123", "New Student")
        assert session.token
        assert session.profile.role == "student"
        assert auth.resolve_session(session.token).id == session.profile.id

    def test_instructor_code_files_request(self, instructor):
        """A valid code creates a pending affiliation request."""
        session = auth.sign_up(
            "new@example.com", "secret123", "New", instructor_code=instructor.profile.instructor_code
        )
        pending = affiliations_repository.get_pending_for_student(session.profile.id)
        assert pending is not None
        assert pending.instructor_id == instructor.id
        assert session.profile.affiliated_instructor is None

    def test_invalid_code_creates_nothing(self):
        """An unknown code fails before the account exists."""
        with pytest.raises(InvalidInputError, match="Invalid instructor code"):
            auth.sign_up("new@example.com", "secret123", "New", instructor_code="NOPE")
        assert profiles_repository.get_profile_by_email("new@example.com") is None


class TestSignIn:
    """Tests for sign_in and resolve_session."""

    def test_sign_in_success(self, student):
        session = auth.sign_in("sam@example.com", "secret123")
        assert session.profile.id == student.id

    def test_unknown_email(self):
        with pytest.raises(AuthError, match="No account found"):
            auth.sign_in("ghost@example.com", "secret123")

    def test_wrong_password(self, student):
        with pytest.raises(AuthError, match="Incorrect password"):
            auth.sign_in("sam@example.com", "wrong-password")

    def test_sign_out_revokes_token(self, student):
        session = auth.sign_in("sam@example.com", "secret123")
        auth.sign_out(session.token)
        with pytest.raises(AuthError):
            auth.resolve_session(session.token)

    def test_expired_session_is_revoked(self, student):
        """Expired tokens fail with the session-expired message."""
        past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()
        auth_repository.insert_session("old-token", student.id, past)
        with pytest.raises(AuthError) as exc_info:
            auth.resolve_session("old-token")
        assert str(exc_info.value) == SESSION_EXPIRED_MESSAGE
        assert auth_repository.get_session("old-token") is None

    def test_unknown_token(self):
        with pytest.raises(AuthError, match="Not authenticated"):
            auth.resolve_session("nope")


class TestPasswordReset:
    """Tests for request_password_reset and reset_password."""

    def test_reset_flow(self, student, outbox):
        """A mailed token sets a new password once."""
        assert auth.request_password_reset("sam@example.com") is True
        assert outbox[-1].to == "sam@example.com"
        token = _reset_token(outbox)

        auth.reset_password(token, "brand-new-pass")
        assert auth.sign_in("sam@example.com", "brand-new-pass").profile.id == student.id

        with pytest.raises(AuthError, match="Invalid or expired"):
            auth.reset_password(token, "another-pass")

    def test_unknown_email_sends_nothing(self, outbox):
        auth.request_password_reset("ghost@example.com")
        assert len(outbox) == 0

    def test_failed_delivery_is_silent(self, student, failing_mail):
        """An unreachable mail server looks the same as an unknown email."""
        assert auth.request_password_reset("sam@example.com") is False
        assert auth.request_password_reset("ghost@example.com") is False
        failing_mail.assert_called_once()

    def test_reset_revokes_sessions(self, student, outbox):
        session = auth.sign_in("sam@example.com", "secret123")
        auth.request_password_reset("sam@example.com")
        auth.reset_password(_reset_token(outbox), "brand-new-pass")
        with pytest.raises(AuthError):
            auth.resolve_session(session.token)

    def test_update_password_revokes_sessions(self, student):
        session = auth.sign_in("sam@example.com", "secret123")
        user = auth.resolve_session(session.token)
        auth.update_password(user, "brand-new-pass")
        with pytest.raises(AuthError):
            auth.resolve_session(session.token)
        auth.sign_in("sam@example.com", "brand-new-pass")


class TestImpersonation:
    """Tests for start_impersonation and stop_impersonation."""

    def test_admin_acts_as_student(self, admin, student):
        """The delegated session resolves to the target with the admin attached."""
        session = auth.start_impersonation(admin, student.id)
        user = auth.resolve_session(session.token)
        assert user.id == student.id
        assert user.role == "student"
        assert user.impersonator.id == admin.id

    def test_stop_returns_admin(self, admin, student):
        session = auth.start_impersonation(admin, student.id)
        user = auth.resolve_session(session.token)
        assert auth.stop_impersonation(user).id == admin.id
        with pytest.raises(AuthError):
            auth.resolve_session(session.token)

    def test_only_admins(self, instructor, student):
        with pytest.raises(PermissionDeniedError):
            auth.start_impersonation(instructor, student.id)

    def test_cannot_target_admin(self, admin, make_user):
        other = make_user("admin")
        with pytest.raises(PermissionDeniedError):
            auth.start_impersonation(admin, other.id)

    def test_unknown_target(self, admin):
        with pytest.raises(NotFoundError):
            auth.start_impersonation(admin, "missing")

    def test_no_password_change_while_impersonating(self, admin, student):
        session = auth.start_impersonation(admin, student.id)
        user = auth.resolve_session(session.token)
        with pytest.raises(PermissionDeniedError):
            auth.update_password(user, "brand-new-pass")

    def test_stop_without_impersonation(self, student):
        with pytest.raises(InvalidInputError):
            auth.stop_impersonation(student)

    def test_deleted_profile_session_is_revoked(self, student):
        """A session whose profile vanished signs the user out."""
        session = auth.sign_in("sam@example.com", "secret123")
        with get_db() as conn:
            conn.execute("PRAGMA foreign_keys = OFF")
            conn.execute("DELETE FROM profiles WHERE id = ?", (student.id,))
        with pytest.raises(AuthError):
            auth.resolve_session(session.token)
