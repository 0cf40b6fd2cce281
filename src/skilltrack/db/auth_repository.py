"""Repository functions for auth_sessions and password_resets tables."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skilltrack.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class SessionRecord:
    """Bearer session from database."""

    token: str
    profile_id: str
    impersonator_id: str | None
    created_at: str
    expires_at: str


@dataclass
class PasswordResetRecord:
    """One-time password reset token."""

    token: str
    profile_id: str
    created_at: str
    expires_at: str
    used: bool


# =============================================================================
# SESSIONS
# =============================================================================


def insert_session(
    token: str,
    profile_id: str,
    expires_at: str,
    impersonator_id: str | None = None,
) -> SessionRecord:
    now = utc_now()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO auth_sessions (token, profile_id, impersonator_id, created_at, expires_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (token, profile_id, impersonator_id, now, expires_at),
        )

    return SessionRecord(
        token=token,
        profile_id=profile_id,
        impersonator_id=impersonator_id,
        created_at=now,
        expires_at=expires_at,
    )


def get_session(token: str) -> SessionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM auth_sessions WHERE token = ?", (token,)
        ).fetchone()

    if row is None:
        return None

    return SessionRecord(
        token=row["token"],
        profile_id=row["profile_id"],
        impersonator_id=row["impersonator_id"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
    )


def delete_session(token: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM auth_sessions WHERE token = ?", (token,))

    return cursor.rowcount > 0


def delete_sessions_for_profile(profile_id: str) -> int:
    """Revoke every session of a profile, including delegated ones.

    Returns:
        Number of sessions removed
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM auth_sessions WHERE profile_id = ? OR impersonator_id = ?",
            (profile_id, profile_id),
        )

    logger.debug("auth.sessions_revoked", profile_id=profile_id, count=cursor.rowcount)
    return cursor.rowcount


# =============================================================================
# PASSWORD RESETS
# =============================================================================


def insert_password_reset(token: str, profile_id: str, expires_at: str) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO password_resets (token, profile_id, created_at, expires_at, used)
            VALUES (?, ?, ?, ?, 0)
            """,
            (token, profile_id, utc_now(), expires_at),
        )


def get_password_reset(token: str) -> PasswordResetRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM password_resets WHERE token = ?", (token,)
        ).fetchone()

    if row is None:
        return None

    return PasswordResetRecord(
        token=row["token"],
        profile_id=row["profile_id"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        used=bool(row["used"]),
    )


def mark_password_reset_used(token: str) -> None:
    with get_db() as conn:
        conn.execute("UPDATE password_resets SET used = 1 WHERE token = ?", (token,))
