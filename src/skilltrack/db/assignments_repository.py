"""Repository functions for skill_assignments table."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)

STATUSES = ("pending", "completed", "expired")


@dataclass
class AssignmentRecord:
    """Skill assignment joined with skill and category names."""

    id: str
    skill_id: str
    skill_name: str
    category_name: str
    student_id: str
    required_submissions: int
    due_date: str | None
    status: str
    created_at: str


_ASSIGNMENT_SELECT = """
    SELECT a.*, s.name AS skill_name, c.name AS category_name
    FROM skill_assignments a
    JOIN skills s ON s.id = a.skill_id
    JOIN skill_categories c ON c.id = s.category_id
"""


def insert_assignments(
    rows: list[tuple[str, str, int, str | None]],
) -> list[str]:
    """Insert assignments, skipping (skill, student) pairs that already exist.

    Args:
        rows: (skill_id, student_id, required_submissions, due_date) tuples

    Returns:
        Ids of the inserted assignments
    """
    inserted: list[str] = []
    now = utc_now()

    with get_db() as conn:
        for skill_id, student_id, required, due_date in rows:
            assignment_id = new_id()
            try:
                conn.execute(
                    """
                    INSERT INTO skill_assignments (
                        id, skill_id, student_id, required_submissions,
                        due_date, status, created_at
                    ) VALUES (?, ?, ?, ?, ?, 'pending', ?)
                    """,
                    (assignment_id, skill_id, student_id, required, due_date, now),
                )
            except sqlite3.IntegrityError:
                logger.debug(
                    "assignments.duplicate_skipped",
                    skill_id=skill_id,
                    student_id=student_id,
                )
                continue
            inserted.append(assignment_id)

    logger.debug("assignments.inserted", count=len(inserted))
    return inserted


def get_assignment(skill_id: str, student_id: str) -> AssignmentRecord | None:
    """Get the assignment of a skill to a student."""
    with get_db() as conn:
        row = conn.execute(
            _ASSIGNMENT_SELECT + " WHERE a.skill_id = ? AND a.student_id = ?",
            (skill_id, student_id),
        ).fetchone()

    return _row_to_record(row) if row else None


def get_assignments_for_student(
    student_id: str,
    status: str | None = None,
) -> list[AssignmentRecord]:
    """Get a student's assignments ordered by skill name."""
    sql = _ASSIGNMENT_SELECT + " WHERE a.student_id = ?"
    params: list = [student_id]
    if status is not None:
        sql += " AND a.status = ?"
        params.append(status)
    sql += " ORDER BY s.name"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_record(row) for row in rows]


def get_assignments_for_skills(skill_ids: list[str]) -> list[AssignmentRecord]:
    """Get every assignment of the given skills."""
    if not skill_ids:
        return []
    placeholders = ", ".join("?" for _ in skill_ids)
    with get_db() as conn:
        rows = conn.execute(
            _ASSIGNMENT_SELECT + f" WHERE a.skill_id IN ({placeholders})",
            skill_ids,
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def update_status(assignment_id: str, status: str) -> None:
    with get_db() as conn:
        conn.execute(
            "UPDATE skill_assignments SET status = ? WHERE id = ?",
            (status, assignment_id),
        )

    logger.debug("assignments.status_updated", assignment_id=assignment_id, status=status)


def delete_assignment(skill_id: str, student_id: str) -> bool:
    """Delete the assignment of a skill to a student.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM skill_assignments WHERE skill_id = ? AND student_id = ?",
            (skill_id, student_id),
        )

    return cursor.rowcount > 0


def expire_overdue(today: str) -> int:
    """Mark pending assignments whose due date is before ``today`` as expired.

    Args:
        today: ISO date (YYYY-MM-DD)

    Returns:
        Number of assignments expired
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE skill_assignments SET status = 'expired'
            WHERE status = 'pending' AND due_date IS NOT NULL AND due_date < ?
            """,
            (today,),
        )

    return cursor.rowcount


def _row_to_record(row) -> AssignmentRecord:
    """Convert database row to AssignmentRecord."""
    return AssignmentRecord(
        id=row["id"],
        skill_id=row["skill_id"],
        skill_name=row["skill_name"],
        category_name=row["category_name"],
        student_id=row["student_id"],
        required_submissions=row["required_submissions"],
        due_date=row["due_date"],
        status=row["status"],
        created_at=row["created_at"],
    )
