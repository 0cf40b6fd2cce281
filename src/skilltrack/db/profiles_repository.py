"""Repository functions for profiles table.

Provides CRUD operations for user profiles (students, instructors, admins).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)

ROLES = ("student", "instructor", "admin")


@dataclass
class ProfileRecord:
    """Profile record from database."""

    id: str
    role: str
    full_name: str
    email: str
    password_hash: str
    instructor_code: str | None
    affiliated_instructor: str | None
    created_at: str
    updated_at: str

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    @property
    def is_instructor(self) -> bool:
        return self.role == "instructor"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def insert_profile(
    full_name: str,
    email: str,
    password_hash: str,
    role: str = "student",
    instructor_code: str | None = None,
    affiliated_instructor: str | None = None,
    profile_id: str | None = None,
) -> ProfileRecord:
    """Insert a new profile.

    Args:
        full_name: Display name
        email: Login email (unique, case-insensitive)
        password_hash: Hashed password
        role: 'student', 'instructor' or 'admin'
        instructor_code: Affiliation code (instructors only)
        affiliated_instructor: Instructor profile id (students only)
        profile_id: Explicit id (generated when omitted)

    Returns:
        The inserted ProfileRecord

    Raises:
        sqlite3.IntegrityError: If email or instructor_code already exists
    """
    profile_id = profile_id or new_id()
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO profiles (
                id, role, full_name, email, password_hash,
                instructor_code, affiliated_instructor, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile_id,
                role,
                full_name,
                email,
                password_hash,
                instructor_code,
                affiliated_instructor,
                now,
                now,
            ),
        )

    logger.debug("profiles.inserted", profile_id=profile_id, role=role)

    return ProfileRecord(
        id=profile_id,
        role=role,
        full_name=full_name,
        email=email,
        password_hash=password_hash,
        instructor_code=instructor_code,
        affiliated_instructor=affiliated_instructor,
        created_at=now,
        updated_at=now,
    )


def get_profile_by_id(profile_id: str) -> ProfileRecord | None:
    """Get profile by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE id = ?", (profile_id,)
        ).fetchone()

    return _row_to_record(row) if row else None


def get_profile_by_email(email: str) -> ProfileRecord | None:
    """Get profile by email (case-insensitive)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE email = ? COLLATE NOCASE", (email,)
        ).fetchone()

    return _row_to_record(row) if row else None


def get_instructor_by_code(instructor_code: str) -> ProfileRecord | None:
    """Get an instructor profile by its affiliation code."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE instructor_code = ? AND role = 'instructor'",
            (instructor_code,),
        ).fetchone()

    return _row_to_record(row) if row else None


def list_profiles(
    role: str | None = None,
    affiliated_instructor: str | None = None,
    unaffiliated: bool = False,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[ProfileRecord]:
    """List profiles ordered by full name.

    Args:
        role: Only profiles with this role
        affiliated_instructor: Only students affiliated to this instructor
        unaffiliated: Only profiles without an affiliated instructor
        search: Case-insensitive substring of full name or email
        limit: Page size (None = no limit)
        offset: Rows to skip

    Returns:
        List of ProfileRecord
    """
    clauses: list[str] = []
    params: list = []

    if role is not None:
        clauses.append("role = ?")
        params.append(role)
    if affiliated_instructor is not None:
        clauses.append("affiliated_instructor = ?")
        params.append(affiliated_instructor)
    if unaffiliated:
        clauses.append("affiliated_instructor IS NULL")
    if search:
        clauses.append("(full_name LIKE ? OR email LIKE ?)")
        pattern = f"%{search}%"
        params.extend([pattern, pattern])

    sql = "SELECT * FROM profiles"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY full_name COLLATE NOCASE"
    if limit is not None:
        sql += " LIMIT ? OFFSET ?"
        params.extend([limit, offset])

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_record(row) for row in rows]


def update_profile(
    profile_id: str,
    full_name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    instructor_code: str | None = None,
) -> bool:
    """Update the given profile fields.

    Returns:
        True if a row was updated
    """
    fields: dict[str, str] = {}
    if full_name is not None:
        fields["full_name"] = full_name
    if email is not None:
        fields["email"] = email
    if role is not None:
        fields["role"] = role
    if instructor_code is not None:
        fields["instructor_code"] = instructor_code

    if not fields:
        return get_profile_by_id(profile_id) is not None

    fields["updated_at"] = utc_now()
    assignments = ", ".join(f"{name} = ?" for name in fields)

    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE profiles SET {assignments} WHERE id = ?",
            (*fields.values(), profile_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("profiles.updated", profile_id=profile_id, fields=list(fields))
    return updated


def set_affiliated_instructor(profile_id: str, instructor_id: str | None) -> None:
    """Set or clear a student's affiliated instructor."""
    with get_db() as conn:
        conn.execute(
            "UPDATE profiles SET affiliated_instructor = ?, updated_at = ? WHERE id = ?",
            (instructor_id, utc_now(), profile_id),
        )

    logger.debug(
        "profiles.affiliation_set",
        profile_id=profile_id,
        instructor_id=instructor_id,
    )


def update_password_hash(profile_id: str, password_hash: str) -> None:
    """Replace a profile's password hash."""
    with get_db() as conn:
        conn.execute(
            "UPDATE profiles SET password_hash = ?, updated_at = ? WHERE id = ?",
            (password_hash, utc_now(), profile_id),
        )


def _row_to_record(row) -> ProfileRecord:
    """Convert database row to ProfileRecord."""
    return ProfileRecord(
        id=row["id"],
        role=row["role"],
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        instructor_code=row["instructor_code"],
        affiliated_instructor=row["affiliated_instructor"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
